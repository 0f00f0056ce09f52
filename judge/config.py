"""Centralized configuration management using Pydantic Settings.

This module provides typed configuration for the judge service,
loaded from environment variables with sensible defaults.

Usage:
    from judge.config import get_settings
    settings = get_settings()
    timeout = settings.sandbox.timeout_sec
"""

import sys
import tempfile
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _parse_bool(v):
    if isinstance(v, str):
        return v.lower() in ("1", "true", "yes")
    return bool(v)


class SandboxSettings(BaseSettings):
    """Submission sandbox configuration."""

    model_config = SettingsConfigDict(env_prefix="SANDBOX_", extra="ignore")

    isolation: Literal["process", "docker"] = Field(
        default="process", description="Run harnesses as a local process or inside a container"
    )
    interpreter: str = Field(
        default_factory=lambda: sys.executable or "python3",
        description="Interpreter used to run generated harnesses",
    )
    scratch_dir: str = Field(default="", description="Directory for harness artifacts")
    timeout_sec: float = Field(default=10.0, gt=0, description="Wall-clock limit per run")
    memory_limit_mb: int = Field(default=256, ge=0, description="Address space limit, 0 disables")
    max_output_chars: int = Field(default=50000, gt=0, description="Captured stderr cap")
    max_result_chars: int = Field(
        default=2_000_000, gt=0, description="Captured stdout cap, which carries the result document"
    )
    max_source_chars: int = Field(default=200 * 1024, gt=0, description="Largest accepted submission")
    image: str = Field(default="python:3.12-slim", description="Container image for docker isolation")
    container_interpreter: str = Field(default="python3", description="Interpreter inside the container")
    cpu_limit: float = Field(default=0.5, gt=0, description="CPU limit for docker isolation")
    pids_limit: int = Field(default=64, gt=0, description="Process limit for a run")

    @property
    def scratch_path(self) -> str:
        """Configured scratch directory, falling back to the system temp dir."""
        return self.scratch_dir or tempfile.gettempdir()


class ServiceSettings(BaseSettings):
    """Request handling configuration."""

    model_config = SettingsConfigDict(env_prefix="JUDGE_", extra="ignore")

    max_concurrent: int = Field(default=8, gt=0, description="Runs allowed in flight at once")
    queue_timeout_sec: float = Field(default=30.0, ge=0, description="Wait for a free run slot")
    log_level: str = Field(default="INFO", description="Root log level")


class CorsSettings(BaseSettings):
    """CORS configuration."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    origins_raw: str = Field(
        default="http://localhost:3000",
        validation_alias="CORS_ORIGINS",
    )
    origins_regex: str = Field(
        default="",
        validation_alias="CORS_ORIGINS_REGEX",
        description="Regex pattern for origins",
    )

    @property
    def origins(self) -> list[str]:
        """Parse comma-separated origins into list."""
        return [o.strip() for o in self.origins_raw.split(",") if o.strip()]

    @property
    def allow_credentials(self) -> bool:
        """Credentials not allowed with wildcard origins."""
        return self.origins != ["*"] and not self.origins_regex


class DebugSettings(BaseSettings):
    """Debug flags configuration."""

    model_config = SettingsConfigDict(extra="ignore")

    request: bool = Field(default=False, alias="request_debug")

    @field_validator("*", mode="before")
    @classmethod
    def parse_bool(cls, v):
        return _parse_bool(v)


class Settings:
    """Main application settings combining all configuration sections.

    This is not a BaseSettings subclass to avoid env var conflicts.
    Each subsetting is loaded independently with its own prefix.
    """

    def __init__(self) -> None:
        self.sandbox = SandboxSettings()
        self.service = ServiceSettings()
        self.cors = CorsSettings()
        self.debug = DebugSettings()


@lru_cache
def get_settings() -> Settings:
    """Get cached Settings instance (singleton pattern)."""
    return Settings()


def clear_settings_cache() -> None:
    """Clear cached settings (useful for testing)."""
    get_settings.cache_clear()
