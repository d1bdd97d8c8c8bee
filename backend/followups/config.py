"""Application settings and configuration helpers."""
from functools import lru_cache
import os
from pydantic import BaseModel, Field
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseModel):
    """Runtime configuration loaded from environment variables."""

    database_url: str = Field(
        default="sqlite+aiosqlite:///./followups.db", alias="DATABASE_URL"
    )
    env: str = Field(default="development", alias="APP_ENV")
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=4000, alias="PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Connection pool bounds
    db_max_open_conns: int = Field(default=25, alias="DB_MAX_OPEN_CONNS")
    db_max_idle_conns: int = Field(default=25, alias="DB_MAX_IDLE_CONNS")
    db_max_idle_time: int = Field(default=15 * 60, alias="DB_MAX_IDLE_TIME")
    db_pool_timeout: float = Field(default=5.0, alias="DB_POOL_TIMEOUT")
    db_query_timeout: float = Field(default=3.0, alias="DB_QUERY_TIMEOUT")

    smtp_host: str = Field(default="localhost", alias="SMTP_HOST")
    smtp_port: int = Field(default=2525, alias="SMTP_PORT")
    smtp_username: str = Field(default="", alias="SMTP_USERNAME")
    smtp_password: str = Field(default="", alias="SMTP_PASSWORD")
    smtp_sender: str = Field(
        default="FollowUps <no-reply@followups.local>", alias="SMTP_SENDER"
    )
    smtp_retries: int = Field(default=3, alias="SMTP_RETRIES")

    cors_trusted_origins: str = Field(default="", alias="CORS_TRUSTED_ORIGINS")

    limiter_enabled: bool = Field(default=True, alias="LIMITER_ENABLED")
    limiter_rps: float = Field(default=2.0, alias="LIMITER_RPS")
    limiter_burst: int = Field(default=4, alias="LIMITER_BURST")

    background_task_limit: int = Field(default=100, alias="BACKGROUND_TASK_LIMIT")
    shutdown_timeout: float = Field(default=30.0, alias="SHUTDOWN_TIMEOUT")

    model_config = {
        "populate_by_name": True,
        "extra": "ignore",
    }

    @property
    def trusted_origins(self) -> list[str]:
        """CORS origins, given space separated in the environment."""

        return self.cors_trusted_origins.split()

    @property
    def uses_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    overrides = {
        field.alias: os.environ[field.alias]
        for field in Settings.model_fields.values()
        if field.alias and field.alias in os.environ
    }
    return Settings(**overrides)
