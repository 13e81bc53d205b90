"""Configuration and environment settings for the Budget Cycle Engine."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings for the Budget Cycle Engine."""

    data_service_url: str = ""
    data_service_token: str | None = None
    data_service_timeout: float = 30.0
    history_limit: int = 30
    log_file: str = "logs/budget_cycle.log"
    server_host: str = "127.0.0.1"
    server_port: int = 8000

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", env_prefix="BUDGET_", extra="ignore"
    )


def get_settings() -> "Settings":
    """Return an instance of the application settings."""
    return Settings()
