"""
docstore Configuration — Load and validate docstore.yaml.

Example docstore.yaml:

    backend: file:///var/lib/docstore
    environment: dev
    database:
      pool_size: 5
      create_tables: true
    files:
      dir_mode: "0755"
    logging:
      level: INFO
      audit: true
      directory: .docstore/logs

Environment overrides:
    DOCSTORE_CONFIG   — path to the YAML file
    DOCSTORE_BACKEND  — connection URI, wins over ``backend:``

Usage:
    from docstore.engine.config import get_config, open_store
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import yaml
from pydantic import BaseModel, field_validator

from docstore.engine.errors import StoreConfigError

if TYPE_CHECKING:
    from docstore.documents.store import DocumentStore

CONFIG_FILENAME = "docstore.yaml"
CONFIG_ENV = "DOCSTORE_CONFIG"
BACKEND_ENV = "DOCSTORE_BACKEND"


# ---------------------------------------------------------------------------
# Pydantic models for docstore.yaml
# ---------------------------------------------------------------------------

class DatabaseConfig(BaseModel):
    """Connection pool settings for the relational backend."""
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800
    pool_pre_ping: bool = True
    create_tables: bool = True
    echo: bool = False


class FileStoreConfig(BaseModel):
    """Permissions used by the filesystem backend for new entries."""
    dir_mode: int = 0o755
    file_mode: int = 0o644

    @field_validator("dir_mode", "file_mode", mode="before")
    @classmethod
    def parse_octal(cls, v):
        # YAML 1.1 reads 0755 as octal but leaves 0o755 as a string
        if isinstance(v, str):
            return int(v, 8)
        return v


class LoggingConfig(BaseModel):
    level: str = "INFO"
    directory: str = ".docstore/logs"
    audit: bool = False
    flush_interval_ms: int = 100
    flush_batch_size: int = 50
    max_queue_size: int = 10000
    retention_days: int = 90

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level '{v}'")
        return v


class StoreConfig(BaseModel):
    """Root model for docstore.yaml."""
    backend: Optional[str] = None
    environment: str = "dev"

    database: DatabaseConfig = DatabaseConfig()
    files: FileStoreConfig = FileStoreConfig()
    logging: LoggingConfig = LoggingConfig()

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        if v not in ("dev", "staging", "prod"):
            raise ValueError(f"environment must be dev/staging/prod, got '{v}'")
        return v


# ---------------------------------------------------------------------------
# Config Loading Functions
# ---------------------------------------------------------------------------

_config: Optional[StoreConfig] = None


def _find_config_file() -> Optional[Path]:
    """Look for docstore.yaml in CWD and its parents."""
    current = Path.cwd()
    for parent in [current, *current.parents]:
        candidate = parent / CONFIG_FILENAME
        if candidate.exists():
            return candidate
    return None


def load_config(config_path: Optional[str] = None) -> StoreConfig:
    """
    Load and validate docstore.yaml.

    Args:
        config_path: Explicit path. If None, uses $DOCSTORE_CONFIG, then
                     auto-discovers. A missing file yields the defaults.

    Returns:
        Validated StoreConfig instance (also cached for get_config()).
    """
    global _config

    if config_path is None:
        config_path = os.environ.get(CONFIG_ENV)
    path = Path(config_path) if config_path else _find_config_file()

    raw = {}
    if path is not None and path.exists():
        with open(path, "r", encoding="utf-8") as f:
            try:
                raw = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise StoreConfigError(f"{path} is not valid YAML: {e}", path=str(path)) from e
        if not isinstance(raw, dict):
            raise StoreConfigError(f"{path} does not contain a mapping", path=str(path))

    env_backend = os.environ.get(BACKEND_ENV)
    if env_backend:
        raw["backend"] = env_backend

    _config = StoreConfig(**raw)
    return _config


def get_config() -> StoreConfig:
    """Get the currently loaded config, loading if necessary."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Forget the cached config (tests, reloads)."""
    global _config
    _config = None


def open_store(uri: Optional[str] = None) -> "DocumentStore":
    """
    Open the configured store.

    Resolution order: ``uri`` argument, $DOCSTORE_BACKEND, ``backend:`` in
    docstore.yaml. Raises StoreConfigError if none is set.
    """
    from docstore.engine.registry import new_store

    target = uri or get_config().backend
    if not target:
        raise StoreConfigError(
            f"no backend configured (set {BACKEND_ENV} or 'backend:' in {CONFIG_FILENAME})"
        )
    return new_store(target)
