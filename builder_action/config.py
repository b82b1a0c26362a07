"""Configuration settings for builder_action.

Uses pydantic-settings for config parsing from environment variables
and defaults. Configuration precedence: CLI flags > env vars > defaults.

Build options themselves (target, output path, flags) are not settings:
they arrive as ``-key value`` arguments, see builder_action.options.
"""

import shlex
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_log_dir() -> Path:
    """Return the default directory for backend logs and reports."""
    return Path.cwd() / "build-logs"


class Settings(BaseSettings):
    """Application settings.

    Settings are loaded from environment variables with the BUILDER_ACTION_
    prefix. CLI flags can override these at runtime.
    """

    model_config = SettingsConfigDict(
        env_prefix="BUILDER_ACTION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Backend
    backend_command: str | None = Field(
        default=None,
        description="Command invoked for backend actions (shell-style string)",
    )
    log_dir: Path = Field(
        default_factory=_default_log_dir,
        description="Directory for backend logs, manifest and build report",
    )

    # Operational modes
    strict_validation: bool = Field(
        default=True,
        description="Run asset validation in strict mode",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    # Timeouts (in seconds)
    validation_timeout: int = Field(
        default=1800,
        ge=60,
        description="Timeout for the validation action",
    )
    build_timeout: int = Field(
        default=7200,
        ge=60,
        description="Timeout for the build action",
    )
    content_timeout: int = Field(
        default=3600,
        ge=60,
        description="Timeout for each content build action",
    )

    def backend_argv(self) -> list[str] | None:
        """Split backend_command into an argument list.

        Returns:
            Argument list, or None if no backend command is configured.
        """
        if not self.backend_command:
            return None
        return shlex.split(self.backend_command) or None


def get_settings() -> Settings:
    """Get the application settings singleton.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()


def print_settings_json(settings: Settings | None = None) -> str:
    """Render effective settings as JSON.

    Args:
        settings: Optional settings instance; uses default if not provided.

    Returns:
        JSON string of effective settings.
    """
    if settings is None:
        settings = get_settings()
    return settings.model_dump_json(indent=2)


__all__ = ["Settings", "get_settings", "print_settings_json"]
