"""
Configuration settings for pgfacade.

Uses Pydantic Settings to load environment variables for the database
connection, pool overrides, and logging. `DBConfig` is the immutable value
handed to `new_pool`; `Settings.db_config()` builds one from the environment.
"""
from __future__ import annotations

from datetime import timedelta
from functools import lru_cache

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DBConfig(BaseModel):
    """
    Connection parameters for a PostgreSQL pool.

    `max_conn` and `connect_timeout` are only applied when both are non-zero;
    otherwise the pool defaults are used.
    """

    host: str = Field("localhost", description="Database server host.")
    port: int = Field(5432, description="Database server port.")
    user: str = Field("postgres", description="Role used to connect.")
    password: str = Field("", description="Password for the role.")
    db: str = Field("postgres", description="Database name.")
    ssl_mode: str = Field("", description="libpq sslmode; empty means libpq default.")
    max_conn: int = Field(0, ge=0, description="Pool max size override (0 = unset).")
    connect_timeout: timedelta = Field(
        timedelta(0), description="Connect timeout override (0 = unset)."
    )

    model_config = {
        "frozen": True,
        "populate_by_name": True,
    }

    @property
    def has_pool_overrides(self) -> bool:
        return self.max_conn != 0 and self.connect_timeout != timedelta(0)


class Settings(BaseSettings):
    # Database
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: str = Field("postgres", alias="DB_USER")
    db_password: str = Field("postgres", alias="DB_PASSWORD")
    db_name: str = Field("postgres", alias="DB_NAME")
    db_sslmode: str = Field("", alias="DB_SSLMODE")

    # Pool overrides
    db_max_conn: int = Field(0, alias="DB_MAX_CONN")
    db_connect_timeout: float = Field(0.0, ge=0, alias="DB_CONNECT_TIMEOUT")  # seconds

    # Logging
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")
    query_timing_enabled: bool = Field(True, alias="QUERY_TIMING_ENABLED")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    def db_config(self) -> DBConfig:
        """Build the immutable pool configuration from these settings."""
        return DBConfig(
            host=self.db_host,
            port=self.db_port,
            user=self.db_user,
            password=self.db_password,
            db=self.db_name,
            ssl_mode=self.db_sslmode,
            max_conn=self.db_max_conn,
            connect_timeout=timedelta(seconds=self.db_connect_timeout),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["DBConfig", "Settings", "get_settings"]
