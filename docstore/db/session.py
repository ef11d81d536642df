"""
docstore Database Session Management.

Context manager for transactional access to a relational store's engine.
Every relational backend call runs inside exactly one session_scope(), so
an operation either commits fully or rolls back.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Generator

from sqlalchemy.orm import Session, sessionmaker


@contextmanager
def session_scope(factory: sessionmaker) -> Generator[Session, None, None]:
    """
    Context manager for sessions with auto-commit/rollback.

    Usage:
        with session_scope(factory) as session:
            session.add(DocumentVersion(...))
    """
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
