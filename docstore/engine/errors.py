"""
docstore Error Hierarchy — Structured exceptions shared by every backend.

Every backend raises the same four contract errors under the same
conditions, so callers can discriminate without knowing which backend
they are talking to. Everything else a backend can go wrong with is
wrapped in StorageBackendError and must be treated as opaque.

Hierarchy:
    DocStoreError
    ├── DocumentNotFoundError  — Name has no versions
    ├── InvalidNameError       — Name fails validation
    ├── ContentTooLargeError   — Content is at or over MAX_CONTENT_SIZE
    ├── StoreClosedError       — Handle used after close()
    ├── StoreConfigError       — Bad URI, unknown scheme, bad backend settings
    └── StorageBackendError    — Opaque I/O / driver / malformed-data failure
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional


class DocStoreError(Exception):
    """
    Base error for all docstore failures.
    All context is serializable to JSON for the audit log.
    """

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.error_type: str = self.__class__.__name__
        self.context: Dict[str, Any] = context
        self.timestamp: str = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize error to a JSON-compatible dict."""
        return {
            "error_type": self.error_type,
            "message": self.message,
            "timestamp": self.timestamp,
            "context": {k: str(v) for k, v in self.context.items()},
        }

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), default=str)

    def __repr__(self) -> str:
        parts = [f"{self.error_type}: {self.message}"]
        parts.extend(f"{k}={v!r}" for k, v in self.context.items())
        return " | ".join(parts)


class DocumentNotFoundError(DocStoreError):
    """The operation targeted a Name with no existing version."""

    def __init__(self, name: str, message: Optional[str] = None, **context: Any):
        self.name = name
        super().__init__(message or f"document {name!r} not found", name=name, **context)


class InvalidNameError(DocStoreError):
    """The Name argument fails validation."""

    def __init__(self, name: str, message: Optional[str] = None, **context: Any):
        self.name = name
        super().__init__(message or f"{name!r} is not a valid document name", name=name, **context)


class ContentTooLargeError(DocStoreError):
    """Write content is at or over the maximum size."""

    def __init__(self, size: int, limit: int, **context: Any):
        self.size = size
        self.limit = limit
        self.excess = size - limit
        super().__init__(
            f"content is {size} bytes ({self.excess} bytes over the {limit} byte limit)",
            size=size,
            limit=limit,
            **context,
        )

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["size"] = self.size
        d["limit"] = self.limit
        return d


class StoreClosedError(DocStoreError):
    """An operation was invoked on a handle after close()."""

    def __init__(self, message: str = "document store is closed", **context: Any):
        self.scheme: Optional[str] = context.get("scheme")
        super().__init__(message, **context)


class StoreConfigError(DocStoreError):
    """Malformed connection URI, unknown scheme, or invalid backend settings."""

    def __init__(self, message: str, **context: Any):
        self.uri: Optional[str] = context.get("uri")
        super().__init__(message, **context)


class StorageBackendError(DocStoreError):
    """
    Backend-specific failure (filesystem, database driver, malformed stored data).

    Callers must not inspect anything beyond the message. The original
    exception is chained as __cause__. For revert/truncate, ``discarded``
    holds how many versions were deleted before the failure.
    """

    def __init__(self, message: str, **context: Any):
        self.backend: Optional[str] = context.get("backend")
        self.operation: Optional[str] = context.get("operation")
        self.discarded: int = context.get("discarded", 0)
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["backend"] = self.backend
        d["operation"] = self.operation
        d["discarded"] = self.discarded
        return d
