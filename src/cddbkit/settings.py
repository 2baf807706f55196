"""Server settings using pydantic-settings."""

import dataclasses
from functools import cache
from pathlib import Path
from typing import Annotated, Literal

from pydantic import BeforeValidator, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from cddbkit.config import BackendConfig, FilesystemConfig, SqlConfig, parse_dsn

LogLevel = Annotated[
    Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
    BeforeValidator(lambda v: v.upper() if isinstance(v, str) else v),
]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CDDBKIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Backend answering the requests
    backend: str = Field(
        default="cddbp://gnudb.gnudb.org:8880",
        description="Backend DSN (cddbp://, http://, filesystem://, sqlite://, ...)",
    )

    # Server settings
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, description="Server port")
    reload: bool = Field(default=False, description="Enable auto-reload")
    log_level: LogLevel = Field(default="INFO", description="Log level")

    # Protocol settings
    interface: str = Field(
        default="http", description="Interface name reported by the stat command"
    )
    motd_file: Path | None = Field(
        default=None, description="Message of the day file for local backends"
    )
    use_stat_file: bool = Field(
        default=True, description="Cache per-category counts for filesystem backends"
    )

    def backend_config(self) -> BackendConfig:
        """Parse the backend DSN, applying the local-backend overrides."""
        config = parse_dsn(self.backend)
        if isinstance(config, FilesystemConfig):
            config = dataclasses.replace(config, use_stat_file=self.use_stat_file)
        if isinstance(config, FilesystemConfig | SqlConfig) and self.motd_file:
            config = dataclasses.replace(config, motd_file=self.motd_file)
        return config


@cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
