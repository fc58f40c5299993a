"""Application configuration managed via environment variables."""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Kaamyab Backend"
    debug: bool = False
    log_level: str = "INFO"
    database_url: str = "postgresql+psycopg2://kaamyab@localhost:5432/kaamyab"
    opik_enabled: bool = False
    opik_api_key: str | None = None
    opik_project: str = "kaamyab"
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    analytics_timezone: str = "UTC"
    scheduler_enabled: bool = False
    scheduler_timezone: str = "UTC"
    style_refresh_day: int = 0
    style_refresh_hour: int = 4
    style_refresh_minute: int = 0
    jobs_run_on_startup: bool = False


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


settings = get_settings()
