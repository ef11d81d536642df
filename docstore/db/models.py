"""
docstore Database Models — the append-only ``documents`` table.

    CREATE TABLE documents (
        name      TEXT NOT NULL,
        content   TEXT NOT NULL,
        timestamp TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT now(),
        PRIMARY KEY (name, timestamp)
    );

Rows are only ever inserted or deleted, never updated.
"""

from __future__ import annotations

from sqlalchemy import Column, DateTime, Text, func

from docstore.db.base import Base


class DocumentVersion(Base):
    __tablename__ = "documents"

    name = Column(Text, primary_key=True, nullable=False)
    content = Column(Text, nullable=False)
    timestamp = Column(
        DateTime(timezone=True),
        primary_key=True,
        nullable=False,
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<DocumentVersion {self.name} @ {self.timestamp}>"
