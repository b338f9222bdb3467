"""Chatmedia application configuration.

Loads settings from a single YAML file, ``chatmedia.settings.yaml`` in the
working directory by default.  ``CHATMEDIA_SETTINGS`` points at another file
and ``PORT`` overrides ``server.port``.

Relative paths (``storage.upload_dir``, ``database.path``) resolve against the
directory holding the settings file.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

SETTINGS_FILE = Path("chatmedia.settings.yaml")
SETTINGS_ENV  = "CHATMEDIA_SETTINGS"
PORT_ENV      = "PORT"
IN_MEMORY_DB  = ":memory:"

DEFAULT_MAX_FILE_SIZE_BYTES = 5 * 1024 * 1024


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        logger.warning("Config file not found: %s", path)
        return {}
    with path.open(encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


def _resolve(value: str, base_dir: Path) -> str:
    if value == IN_MEMORY_DB:
        return value
    path = Path(value)
    if path.is_absolute():
        return str(path)
    return str(base_dir / path)


# ---------------------------------------------------------------------------
# Settings models
# ---------------------------------------------------------------------------


class ServerSettings(BaseModel):
    host:            str = "0.0.0.0"
    port:            int = Field(default=3000, ge=1, le=65535)
    log_level:       str = "info"
    allowed_origins: List[str] = Field(default_factory=lambda: ["*"])


class StorageSettings(BaseModel):
    """Where uploads land and what is accepted."""
    upload_dir:          str       = "uploads"
    url_prefix:          str       = "/uploads"
    max_file_size_bytes: int       = Field(default=DEFAULT_MAX_FILE_SIZE_BYTES, gt=0)
    allowed_extensions:  List[str] = Field(
        default_factory=lambda: ["jpeg", "jpg", "png", "gif"]
    )

    @field_validator("url_prefix")
    @classmethod
    def _normalize_prefix(cls, value: str) -> str:
        stripped = value.strip("/")
        if not stripped:
            raise ValueError("url_prefix must not be empty")
        return "/" + stripped

    @field_validator("allowed_extensions")
    @classmethod
    def _normalize_extensions(cls, value: List[str]) -> List[str]:
        exts = [v.strip().lstrip(".").lower() for v in value if v.strip()]
        if not exts:
            raise ValueError("allowed_extensions must not be empty")
        return exts


class DatabaseSettings(BaseModel):
    path: str = "chatmedia.duckdb"


class AppSettings(BaseModel):
    server:   ServerSettings   = Field(default_factory=ServerSettings)
    storage:  StorageSettings  = Field(default_factory=StorageSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)


# ---------------------------------------------------------------------------
# Public loader
# ---------------------------------------------------------------------------


def load_config(settings_path: Optional[Path] = None) -> AppSettings:
    """Load settings from YAML, apply env overrides and resolve paths."""
    path = Path(settings_path or os.environ.get(SETTINGS_ENV) or SETTINGS_FILE)
    data = _load_yaml(path)

    port = os.environ.get(PORT_ENV)
    if port:
        data.setdefault("server", {})["port"] = port

    settings = AppSettings(**data)

    base_dir = path.resolve().parent
    settings.storage.upload_dir = _resolve(settings.storage.upload_dir, base_dir)
    settings.database.path = _resolve(settings.database.path, base_dir)

    logger.info(
        "Settings loaded (server=%s:%s, upload_dir=%s, database=%s)",
        settings.server.host,
        settings.server.port,
        settings.storage.upload_dir,
        settings.database.path,
    )
    return settings


_config: Optional[AppSettings] = None


def get_config() -> AppSettings:
    """Return the process-wide settings, loading them on first use."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Drop the cached settings (for testing)."""
    global _config
    _config = None
