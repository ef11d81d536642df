"""
docstore Document model — one immutable version of one document.

A Document is a snapshot ``(name, content, timestamp)``. Stores create
Documents; callers never supply the timestamp. Writing to a name never
edits an existing Document, it appends a new one.

Guarantees enforced on construction:
    - name passes validate_name()
    - content is smaller than MAX_CONTENT_SIZE bytes (UTF-8 encoded)
    - timestamp is timezone-aware, normalised to UTC
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator

from docstore.documents.names import document_title, validate_name

# Content must be strictly smaller than this many bytes.
MAX_CONTENT_SIZE = 512 * 1024


def content_size(content: str) -> int:
    """Size of ``content`` in bytes, as stored."""
    return len(content.encode("utf-8"))


def as_utc(moment: datetime) -> datetime:
    """Normalise a datetime to UTC. Naive values are taken to already be UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


class Document(BaseModel):
    """
    A single version of a single document.

    Documents compare equal when all three fields match, but two writes of
    the same content are still two distinct versions with distinct timestamps.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Hierarchical document name, e.g. /Foo/Bar")
    content: str = Field(description="UTF-8 text body, opaque to the store")
    timestamp: datetime = Field(description="UTC instant assigned by the store")

    @field_validator("name")
    @classmethod
    def validate_name_field(cls, v: str) -> str:
        if not validate_name(v):
            raise ValueError(f"invalid document name {v!r}")
        return v

    @field_validator("content")
    @classmethod
    def validate_content_size(cls, v: str) -> str:
        size = content_size(v)
        if size >= MAX_CONTENT_SIZE:
            raise ValueError(f"content is {size} bytes, limit is {MAX_CONTENT_SIZE}")
        return v

    @field_validator("timestamp")
    @classmethod
    def validate_timestamp(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            raise ValueError("timestamp must be timezone-aware")
        return v.astimezone(timezone.utc)

    @property
    def title(self) -> str:
        """The final segment of the name."""
        return document_title(self.name)

    @property
    def size(self) -> int:
        return content_size(self.content)
