"""
docstore In-Memory Backend — scheme ``memory``.

    store = new_store("memory://")

Every new_store() call creates an independent, empty store; copies share
it. Nothing is persisted. Versions of a name are kept in a list ordered
oldest to newest, guarded by the lineage lock.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, List, Optional

from docstore.documents.models import Document, as_utc
from docstore.documents.names import is_descendant
from docstore.documents.store import (
    StoreLineage,
    require_content,
    require_name,
    require_prefix,
)
from docstore.engine import logging as audit
from docstore.engine.errors import DocumentNotFoundError, StoreClosedError, StoreConfigError
from docstore.engine.registry import StoreURI, register_store

logger = logging.getLogger("docstore.backends.memory")


class MemoryDocumentStore:
    """DocumentStore kept in process memory. Intended for tests and development."""

    scheme = "memory"

    def __init__(
        self,
        lineage: Optional[StoreLineage] = None,
        documents: Optional[Dict[str, List[Document]]] = None,
    ):
        self._documents: Dict[str, List[Document]] = documents if documents is not None else {}
        self._lineage = lineage or StoreLineage(on_release=self._documents.clear)
        self._closed = False

    @classmethod
    def from_uri(cls, uri: StoreURI) -> "MemoryDocumentStore":
        if uri.host or uri.path not in ("", "/"):
            raise StoreConfigError(
                f"memory store takes no host or path, got {uri.raw!r}", uri=uri.raw
            )
        return cls()

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self) -> None:
        if self._closed:
            raise StoreClosedError(scheme=self.scheme)

    def copy(self) -> "MemoryDocumentStore":
        self._check_open()
        self._lineage.acquire()
        return MemoryDocumentStore(lineage=self._lineage, documents=self._documents)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._lineage.release()

    def __enter__(self) -> "MemoryDocumentStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------

    def get(self, name: str) -> Document:
        self._check_open()
        require_name(name)
        with self._lineage.lock.read():
            versions = self._documents.get(name)
            if not versions:
                raise DocumentNotFoundError(name)
            return versions[-1]

    def get_all(self, name: str) -> List[Document]:
        self._check_open()
        require_name(name)
        with self._lineage.lock.read():
            versions = self._documents.get(name)
            if not versions:
                raise DocumentNotFoundError(name)
            return list(reversed(versions))

    def get_descendants(self, prefix: str) -> List[str]:
        self._check_open()
        require_prefix(prefix)
        with self._lineage.lock.read():
            return sorted(n for n in self._documents if is_descendant(n, prefix))

    # -------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------

    def update(self, name: str, content: str) -> Document:
        self._check_open()
        require_name(name)
        require_content(content)
        with self._lineage.lock.write():
            doc = Document(name=name, content=content, timestamp=self._lineage.clock.next())
            self._documents.setdefault(name, []).append(doc)
        logger.debug(f"Updated {name} @ {doc.timestamp.isoformat()}")
        audit.log(audit.log_document_write(self.scheme, name, doc.timestamp, doc.size))
        return doc

    def revert(self, name: str, timestamp: datetime) -> int:
        return self._discard(name, timestamp, "revert")

    def truncate(self, name: str, timestamp: datetime) -> int:
        return self._discard(name, timestamp, "truncate")

    def _discard(self, name: str, timestamp: datetime, operation: str) -> int:
        self._check_open()
        require_name(name)
        boundary = as_utc(timestamp)
        if operation == "revert":
            def doomed(d: Document) -> bool:
                return d.timestamp >= boundary
        else:
            def doomed(d: Document) -> bool:
                return d.timestamp <= boundary

        with self._lineage.lock.write():
            versions = self._documents.get(name)
            if not versions:
                raise DocumentNotFoundError(name)
            kept = [d for d in versions if not doomed(d)]
            discarded = len(versions) - len(kept)
            if kept:
                self._documents[name] = kept
            else:
                del self._documents[name]
        logger.info(f"{operation} {name} to {boundary.isoformat()}: {discarded} discarded")
        audit.log(audit.log_history_discard(self.scheme, operation, name, boundary, discarded))
        return discarded

    def clear(self) -> None:
        self._check_open()
        with self._lineage.lock.write():
            self._documents.clear()
        logger.info("Cleared memory store")
        audit.log(audit.log_store_cleared(self.scheme))


register_store("memory", MemoryDocumentStore.from_uri)
