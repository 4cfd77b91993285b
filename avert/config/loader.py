"""YAML + env var settings loading with pydantic-settings."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger()


def load_options_file(path: Path) -> dict[str, Any]:
    """Load a YAML options file, returning empty dict when it does not exist."""
    if not path.exists():
        logger.warning("options_file_missing", path=str(path))
        return {}
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping of avert options, got {type(data).__name__}")
    return data


class AvertSettings(BaseSettings):
    """Plugin settings loaded from env vars (``AVERT_*``) and ``.env``."""

    model_config = SettingsConfigDict(
        env_prefix="AVERT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "info"
    log_json: bool = True

    # Global avert options (booleans only; custom sanitizers must be passed in code)
    options_file: str = ""

    def global_options(self) -> dict[str, Any]:
        """Raw global options from ``options_file``, or {} if none is configured."""
        if not self.options_file:
            return {}
        return load_options_file(Path(self.options_file))


_settings: AvertSettings | None = None


def get_settings() -> AvertSettings:
    """Get or create the singleton settings instance."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def load_settings() -> AvertSettings:
    """Load settings from env vars (env vars override model defaults)."""
    global _settings
    _settings = AvertSettings()
    logger.info("settings_loaded", options_file=_settings.options_file or None, log_level=_settings.log_level)
    return _settings
