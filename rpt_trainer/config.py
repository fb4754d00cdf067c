from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    RPT_DATABASE_URL: str = "sqlite:///./rpt_trainer.db"
    SERVICE_NAME: str = "rpt-trainer"
    APP_ENV: str = "local"
    LOG_LEVEL: str = "INFO"
    SQL_ECHO: bool = False

    # Plate increment used whenever a weight is persisted for gym use
    WEIGHT_INCREMENT: int = 5
    WEIGHT_UNIT: str = "lb"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


@lru_cache()
def get_settings() -> Settings:
    return Settings()
