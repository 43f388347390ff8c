from functools import lru_cache
from pathlib import Path
from typing import Literal
from urllib.parse import quote_plus

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]

ASYNC_PG_SCHEME = "postgresql+asyncpg://"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(BASE_DIR / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # service
    app_env: Literal["dev", "staging", "prod"] = "dev"
    app_name: str = "Quizhub API"
    api_prefix: str = "/api/v1"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    cors_allow_origins: str = "http://localhost:3000"

    # storage; DATABASE_URL wins over the individual parts
    database_url: str = ""
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "quizhub"
    db_user: str = "postgres"
    db_password: str = "postgres"
    db_sslmode: Literal["disable", "allow", "prefer", "require", "verify-ca", "verify-full"] = "disable"
    redis_url: str = "redis://localhost:6379/0"

    # credentials are minted by the auth service with the same secret
    jwt_secret_key: str = Field(default="change-me-access-secret-32-bytes-min", min_length=16)
    jwt_access_ttl_min: int = Field(default=60, ge=1)

    # contest core
    freeze_sweep_interval_seconds: int = Field(default=60, ge=5)
    submit_rate_limit: int = Field(default=10, ge=1)
    submit_rate_window_seconds: int = Field(default=60, ge=1)
    leaderboard_page_size: int = Field(default=10, ge=1)
    leaderboard_max_page_size: int = Field(default=100, ge=1)

    @model_validator(mode="after")
    def page_size_within_max(self) -> "Settings":
        if self.leaderboard_page_size > self.leaderboard_max_page_size:
            raise ValueError("leaderboard_page_size must not exceed leaderboard_max_page_size")
        return self

    @property
    def async_database_url(self) -> str:
        if self.database_url:
            for scheme in ("postgres://", "postgresql://"):
                if self.database_url.startswith(scheme):
                    return ASYNC_PG_SCHEME + self.database_url.removeprefix(scheme)
            return self.database_url
        user = quote_plus(self.db_user)
        password = quote_plus(self.db_password)
        ssl_query = "?ssl=require" if self.db_sslmode == "require" else ""
        return f"{ASYNC_PG_SCHEME}{user}:{password}@{self.db_host}:{self.db_port}/{self.db_name}{ssl_query}"

    @property
    def cors_origins(self) -> list[str]:
        return [item.strip() for item in self.cors_allow_origins.split(",") if item.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
