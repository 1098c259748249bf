"""
Configuracion de la aplicacion.
Carga variables de entorno (o de un .env).
"""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuracion cargada del entorno."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_NAME: str = "Veterinaria"
    ENVIRONMENT: str = "development"

    # Base de datos
    DATABASE_URL: str = "sqlite:///./veterinaria.db"
    SQL_ECHO: bool = False

    LOG_LEVEL: str = "INFO"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
