"""
docstore Database Base — SQLAlchemy declarative base and engine construction.

Provides:
- Base: declarative base for the documents table
- engine_options: pool keyword arguments suitable for a given URL
- create_store_engine: engine for the relational backend, tuned from config
"""

from __future__ import annotations

from typing import Any, Dict

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from docstore.engine.config import DatabaseConfig


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for docstore tables."""
    pass


def normalize_url(url: str) -> str:
    """SQLAlchemy only knows the ``postgresql`` dialect name, not ``postgres``."""
    if url.startswith("postgres://"):
        return "postgresql://" + url[len("postgres://"):]
    return url


def engine_options(url: str, config: DatabaseConfig) -> Dict[str, Any]:
    """
    Keyword arguments for create_engine().

    SQLite gets no pool sizing. An in-memory SQLite database exists only
    on the connection that created it, so it is pinned to one connection
    shared by every thread.
    """
    options: Dict[str, Any] = {"echo": config.echo}
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite":
        if parsed.database in (None, "", ":memory:"):
            options.update(
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
        return options
    options.update(
        pool_size=config.pool_size,
        max_overflow=config.max_overflow,
        pool_timeout=config.pool_timeout,
        pool_recycle=config.pool_recycle,
        pool_pre_ping=config.pool_pre_ping,
    )
    return options


def create_store_engine(url: str, config: DatabaseConfig) -> Engine:
    """Create an engine for ``url`` and, if configured, the documents table."""
    url = normalize_url(url)
    engine = create_engine(url, **engine_options(url, config))
    if config.create_tables:
        Base.metadata.create_all(engine)
    return engine

