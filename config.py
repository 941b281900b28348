from __future__ import annotations

import logging
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    """Centralized, type-safe configuration loaded from environment variables.

    Uses pydantic-settings to support .env files and runtime validation.
    """

    # Site output
    DESTINATION_DIR: str = Field(
        default="./_site",
        description="Directory the site build writes to. versions.json is written one level above it.",
    )

    # Label table for versioned roots
    ROOT_LABELS_PATH: str = Field(
        default="./_data/versioned_root_labels.yml",
        description="YAML mapping of versioned root URL prefix to compilation name.",
    )

    SUMMARY_FILENAME: str = Field(
        default="versions.json",
        description="File name of the canonical version summary.",
    )

    LOG_LEVEL: str = Field(default="INFO", description="Logging level name for configure_logging().")

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @field_validator("DESTINATION_DIR", "ROOT_LABELS_PATH")
    @classmethod
    def normalize_path(cls, v: str) -> str:
        """
        Normalize a path setting to an absolute path.

        Relative paths are resolved from the current working directory, which is
        where the site build runs.

        Examples:
            - "./_site" → "/home/me/site/_site"
            - "~/site/_site" → "/home/me/site/_site"
        """
        if not v or not v.strip():
            raise ValueError("path must not be empty")
        return str(Path(v.strip()).expanduser().resolve())

    @field_validator("SUMMARY_FILENAME")
    @classmethod
    def validate_summary_filename(cls, v: str) -> str:
        v = v.strip()
        if not v or v in (".", "..") or "/" in v or "\\" in v:
            raise ValueError("SUMMARY_FILENAME must be a plain file name")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown LOG_LEVEL: {v}")
        return level

    # Convenience helpers
    @property
    def destination_path(self) -> Path:
        return Path(self.DESTINATION_DIR)

    @property
    def root_labels_path(self) -> Path:
        return Path(self.ROOT_LABELS_PATH)

    @property
    def summary_path(self) -> Path:
        return self.destination_path.parent / self.SUMMARY_FILENAME


def configure_logging(level: str | None = None) -> None:
    """Install a basic stderr handler for hosts that have none."""
    logging.basicConfig(
        level=level or config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# Eagerly load configuration at import time for convenience across modules
config = Config()
