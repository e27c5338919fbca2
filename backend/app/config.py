"""Sharebox application configuration.

Settings are read from a single YAML file, ``sharebox.settings.yaml``, looked
up in ``./config/`` first and then in the working directory. Every section is
optional; a missing file yields the defaults below.

Relative storage paths are resolved against the directory holding the
settings file (or against the project root for the ``./config`` layout), so
the service behaves the same regardless of where it is launched from.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

SETTINGS_FILENAME = "sharebox.settings.yaml"
SETTINGS_SEARCH_PATHS = (
    Path("config") / SETTINGS_FILENAME,
    Path(SETTINGS_FILENAME),
)


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        logger.warning("Config file not found: %s", path)
        return {}
    with path.open(encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


def _find_settings_file() -> Path:
    for candidate in SETTINGS_SEARCH_PATHS:
        if candidate.exists():
            return candidate
    return SETTINGS_SEARCH_PATHS[-1]


def _base_dir_for(settings_path: Path) -> Path:
    """Directory that relative paths in *settings_path* are resolved from."""
    settings_dir = settings_path.resolve().parent
    if settings_dir.name == "config":
        return settings_dir.parent
    return settings_dir


# ---------------------------------------------------------------------------
# Settings models
# ---------------------------------------------------------------------------


class ServerSettings(BaseModel):
    host:            str       = "0.0.0.0"
    port:            int       = 8000
    reload:          bool      = False
    allowed_origins: List[str] = Field(default_factory=lambda: ["*"])


class StorageSettings(BaseModel):
    """Where the message log and uploaded payloads live."""
    data_dir:      str = "data"
    messages_file: str = "messages.jsonl"
    uploads_dir:   str = "uploads"

    @property
    def messages_path(self) -> Path:
        return Path(self.data_dir) / self.messages_file

    @property
    def uploads_path(self) -> Path:
        return Path(self.data_dir) / self.uploads_dir


class UploadSettings(BaseModel):
    enabled: bool = True


class StaticSettings(BaseModel):
    """Built front-end bundle served for any non-API path."""
    dist_dir: Optional[str] = "dist"


class LoggingSettings(BaseModel):
    level: str = "info"

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        if not isinstance(getattr(logging, value.upper(), None), int):
            raise ValueError(f"Unknown log level: {value}")
        return value.lower()


class AppSettings(BaseModel):
    server:  ServerSettings  = Field(default_factory=ServerSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    uploads: UploadSettings  = Field(default_factory=UploadSettings)
    static:  StaticSettings  = Field(default_factory=StaticSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


# ---------------------------------------------------------------------------
# Public loader
# ---------------------------------------------------------------------------


def load_config(settings_path: Optional[Path] = None) -> AppSettings:
    """Load *settings_path* (or the first default location) into AppSettings."""
    path = Path(settings_path) if settings_path else _find_settings_file()
    data = _load_yaml(path)

    settings = AppSettings(**data)

    base_dir = _base_dir_for(path)
    data_dir = Path(settings.storage.data_dir)
    if not data_dir.is_absolute():
        settings.storage.data_dir = str(base_dir / data_dir)
    dist_dir = settings.static.dist_dir
    if dist_dir and not Path(dist_dir).is_absolute():
        settings.static.dist_dir = str(base_dir / dist_dir)

    logger.info(
        "Settings loaded (server=%s:%s, data_dir=%s, uploads.enabled=%s)",
        settings.server.host,
        settings.server.port,
        settings.storage.data_dir,
        settings.uploads.enabled,
    )
    return settings


_config: Optional[AppSettings] = None


def get_config() -> AppSettings:
    """Return the process-wide settings, loading them on first use."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: AppSettings) -> None:
    """Replace the process-wide settings (used by tests)."""
    global _config
    _config = config


def reset_config() -> None:
    """Forget the cached settings so the next get_config() reloads them."""
    global _config
    _config = None
