"""iFood CRM — Configuration via pydantic-settings."""

from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Local storage
    DATA_DIR: str = "./data"
    STORE_FILE: str = "./data/store.json"
    STORAGE_KEY: str = "ifood_clients"

    # Spreadsheet export
    EXPORT_DIR: str = "./data/exports"
    EXPORT_SHEET_NAME: str = "Clientes"
    EXPORT_FILE_PREFIX: str = "clientes-ifood"

    # Timezone
    TIMEZONE: str = "America/Sao_Paulo"

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
