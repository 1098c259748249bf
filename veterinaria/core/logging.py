"""
Configuracion de logging.

En produccion: JSON, una linea por evento.
En desarrollo: formato legible.
"""
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

from veterinaria.core.config import get_settings


class JSONFormatter(logging.Formatter):
    """Un objeto JSON por evento. La hora es la del evento, en UTC."""

    def format(self, record: logging.LogRecord) -> str:
        evento = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "origen": f"{record.module}:{record.funcName}:{record.lineno}",
        }
        if record.exc_info:
            evento["exc"] = self.formatException(record.exc_info)
        if record.stack_info:
            evento["stack"] = self.formatStack(record.stack_info)

        return json.dumps(evento, ensure_ascii=False, default=str)


def setup_logging(level: Optional[str] = None) -> None:
    """Configura el logger raiz segun el ambiente."""
    settings = get_settings()
    log_level = (level or settings.LOG_LEVEL).upper()

    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    if settings.is_production:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))

    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level, logging.INFO))

    # El echo de SQLAlchemy ya tiene su propio flag
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
