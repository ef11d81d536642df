"""
docstore Store Registry — map URI schemes to backend factories.

Backends register themselves when their module is imported:

    register_store("file", FileDocumentStore.from_uri)

Callers then resolve a connection URI to a concrete store:

    store = new_store("file:///var/lib/docstore")

The registry is a process-wide table. Schemes are registered once and
never removed; registering a scheme twice, or without a factory, is a
programming error raised at import time.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, List
from urllib.parse import unquote, urlsplit

from docstore.engine.errors import StoreConfigError

if TYPE_CHECKING:
    from docstore.documents.store import DocumentStore

logger = logging.getLogger("docstore.engine.registry")


@dataclass(frozen=True)
class StoreURI:
    """A parsed connection URI. ``raw`` is kept verbatim for drivers."""

    raw: str
    scheme: str
    host: str
    path: str
    query: str

    @property
    def unquoted_path(self) -> str:
        return unquote(self.path)


StoreFactory = Callable[[StoreURI], "DocumentStore"]


def parse_store_uri(uri: str) -> StoreURI:
    """
    Parse a connection URI of the form ``<scheme>://<authority><path>``.

    Raises StoreConfigError if ``uri`` has no scheme or no "//" authority part.
    """
    if not isinstance(uri, str) or not uri:
        raise StoreConfigError(f"{uri!r} is not a URI", uri=uri)
    try:
        parts = urlsplit(uri)
        host = parts.hostname or ""
    except ValueError as e:
        raise StoreConfigError(f"{uri!r} is not a URI: {e}", uri=uri) from e

    if not parts.scheme or not uri[len(parts.scheme) + 1:].startswith("//"):
        raise StoreConfigError(f"{uri!r} is not a URI", uri=uri)

    return StoreURI(
        raw=uri,
        scheme=parts.scheme.lower(),
        host=host,
        path=parts.path,
        query=parts.query,
    )


class StoreRegistry:
    """
    Scheme -> factory table, safe for concurrent registration and lookup.

    Usage:
        registry = StoreRegistry()
        registry.register("memory", MemoryDocumentStore.from_uri)
        store = registry.new_store("memory://")
    """

    def __init__(self):
        self._factories: Dict[str, StoreFactory] = {}
        self._lock = threading.Lock()

    def register(self, scheme: str, factory: StoreFactory) -> None:
        """Associate ``scheme`` with ``factory``. Each scheme registers once."""
        if factory is None or not callable(factory):
            raise TypeError(f"docstore: factory for scheme {scheme!r} is not callable")
        key = scheme.lower()
        with self._lock:
            if key in self._factories:
                raise ValueError(f"docstore: register called twice for scheme {scheme!r}")
            self._factories[key] = factory
        logger.debug(f"Registered store scheme: {key}")

    def resolve(self, scheme: str) -> StoreFactory:
        """Return the factory for ``scheme`` or raise StoreConfigError."""
        with self._lock:
            factory = self._factories.get(scheme.lower())
        if factory is None:
            raise StoreConfigError(
                f"unknown scheme {scheme!r} (backend module not imported?)",
                scheme=scheme,
            )
        return factory

    def new_store(self, uri: str) -> "DocumentStore":
        """Parse ``uri`` and hand it to the factory registered for its scheme."""
        parsed = parse_store_uri(uri)
        factory = self.resolve(parsed.scheme)
        store = factory(parsed)
        logger.info(f"Opened {parsed.scheme} store")
        return store

    def contains(self, scheme: str) -> bool:
        with self._lock:
            return scheme.lower() in self._factories

    @property
    def schemes(self) -> List[str]:
        """All registered schemes, sorted."""
        with self._lock:
            return sorted(self._factories)


# Global registry singleton
store_registry = StoreRegistry()


def register_store(scheme: str, factory: StoreFactory) -> None:
    """Register a backend factory in the global registry."""
    store_registry.register(scheme, factory)


def new_store(uri: str) -> "DocumentStore":
    """Open a store from a connection URI using the global registry."""
    return store_registry.new_store(uri)
