"""
docstore Test Suite — Shared fixtures and configuration.

Run:  pytest tests/ -v
"""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

import docstore  # noqa: F401  (registers the built-in backends)
from docstore.engine.registry import new_store

BACKENDS = ("memory", "file", "sqlite")


# ---------------------------------------------------------------------------
# Environment setup — no stray config or audit state between tests
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch, tmp_path):
    """Reset global singletons between tests."""
    import docstore.engine.config as cfg_mod
    import docstore.engine.logging as log_mod

    root_logger = logging.getLogger("docstore")
    handlers, level = list(root_logger.handlers), root_logger.level
    monkeypatch.delenv(cfg_mod.BACKEND_ENV, raising=False)
    monkeypatch.delenv(cfg_mod.CONFIG_ENV, raising=False)
    monkeypatch.chdir(tmp_path)
    cfg_mod.reset_config()
    yield
    log_mod.shutdown_logging()
    cfg_mod.reset_config()
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)


def backend_uri(backend: str, root: Path) -> str:
    """Connection URI for a fresh store of the given backend under ``root``."""
    if backend == "memory":
        return "memory://"
    if backend == "file":
        return f"file://{root / 'docs'}"
    if backend == "sqlite":
        return f"sqlite:///{root / 'docs.db'}"
    raise ValueError(backend)


@pytest.fixture(params=BACKENDS)
def store_uri(request, tmp_path):
    """Connection URI for each built-in backend in turn."""
    return backend_uri(request.param, tmp_path)


@pytest.fixture
def store(store_uri):
    """An open store for each built-in backend, closed after the test."""
    s = new_store(store_uri)
    yield s
    s.close()


@pytest.fixture
def file_store(tmp_path):
    s = new_store(backend_uri("file", tmp_path))
    yield s
    s.close()


@pytest.fixture
def sqlite_store(tmp_path):
    s = new_store(backend_uri("sqlite", tmp_path))
    yield s
    s.close()


@pytest.fixture
def write_config(tmp_path):
    """Write a docstore.yaml into the (current) temp dir and return its path."""

    def _write(text: str) -> Path:
        path = tmp_path / "docstore.yaml"
        path.write_text(text, encoding="utf-8")
        return path

    return _write
