import logging
from typing import Optional

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from veterinaria.core.config import get_settings
from veterinaria import models  # noqa: F401  registra las tablas en SQLModel.metadata

logger = logging.getLogger(__name__)


def _activar_foreign_keys(dbapi_connection, connection_record):
    # SQLite no valida las foreign keys si no se le pide
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def crear_engine(database_url: Optional[str] = None, echo: Optional[bool] = None) -> Engine:
    """
    Crea la conexion al backend.

    Sin url se usa DATABASE_URL de la configuracion. Una url
    "sqlite://" (en memoria) usa una sola conexion compartida,
    de lo contrario cada conexion veria una base distinta.
    """
    settings = get_settings()
    url = database_url or settings.DATABASE_URL
    if echo is None:
        echo = settings.SQL_ECHO

    logger.debug("Using <%s> as database url ..", url)
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, echo=echo, **kwargs)
        event.listen(engine, "connect", _activar_foreign_keys)
    else:
        engine = create_engine(url, echo=echo)
    return engine


def crear_tablas(engine: Engine) -> None:
    """Crea las tablas que falten. Se puede llamar varias veces."""
    logger.debug("Creating the tables ..")
    SQLModel.metadata.create_all(engine)
