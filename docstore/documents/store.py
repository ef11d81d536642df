"""
docstore DocumentStore contract — the interface every backend satisfies.

DocumentStore stores Documents in a name-addressable store with immutable
versions. Modifying a document never edits the current version; a new
version is always appended. Versions are identified and ordered by
timestamp. For maintenance, a document can be reverted (discard newest
versions) or truncated (discard oldest versions).

Contract summary (every backend, every scheme):
    get(name)              -> newest Document
    get_all(name)          -> all Documents, newest first
    update(name, content)  -> the Document just created
    revert(name, ts)       -> count discarded (versions at or after ts)
    truncate(name, ts)     -> count discarded (versions at or before ts)
    get_descendants(pfx)   -> sorted Names strictly below pfx ("" = root)
    clear()                -> delete everything
    copy()                 -> new handle on the same storage
    close()                -> release this handle (idempotent)

Errors: InvalidNameError before NotFound; DocumentNotFoundError for names
with no versions; ContentTooLargeError for oversize writes; StoreClosedError
after close(). Anything else is a StorageBackendError.

Consistency: copies are eventually consistent with each other; a single
handle reads its own writes. Ties between timestamps never drop a version,
and get() always returns get_all()[0].

Backends do not inherit from a common base. Each composes a StoreLineage,
the state shared between a handle and every handle copied from it.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Callable, Generator, List, Optional, Protocol, runtime_checkable

from docstore.documents.models import MAX_CONTENT_SIZE, Document, content_size
from docstore.documents.names import validate_name, validate_prefix
from docstore.engine.errors import ContentTooLargeError, InvalidNameError


@runtime_checkable
class DocumentStore(Protocol):
    """Structural interface implemented by every backend."""

    scheme: str

    def get(self, name: str) -> Document:
        """Newest version of ``name``."""
        ...

    def get_all(self, name: str) -> List[Document]:
        """Every version of ``name``, newest (index 0) to oldest."""
        ...

    def update(self, name: str, content: str) -> Document:
        """Append a new version, creating the document if needed."""
        ...

    def revert(self, name: str, timestamp: datetime) -> int:
        """Discard versions at or after ``timestamp``; return how many."""
        ...

    def truncate(self, name: str, timestamp: datetime) -> int:
        """Discard versions at or before ``timestamp``; return how many."""
        ...

    def get_descendants(self, prefix: str) -> List[str]:
        """Names strictly below ``prefix``, ascending. "" is the root."""
        ...

    def clear(self) -> None:
        """Delete every version of every document."""
        ...

    def copy(self) -> "DocumentStore":
        """A new, independently closeable handle on the same storage."""
        ...

    def close(self) -> None:
        """Release this handle. Idempotent."""
        ...

    @property
    def closed(self) -> bool:
        ...

    def __enter__(self) -> "DocumentStore":
        ...

    def __exit__(self, *exc_info) -> None:
        ...


# ---------------------------------------------------------------------------
# Argument checks shared by all backends
# ---------------------------------------------------------------------------

def require_name(name: str) -> str:
    """Raise InvalidNameError unless ``name`` is a valid Name."""
    if not validate_name(name):
        raise InvalidNameError(name)
    return name


def require_prefix(prefix: str) -> str:
    """Raise InvalidNameError unless ``prefix`` is "" or a valid Name."""
    if not validate_prefix(prefix):
        raise InvalidNameError(prefix)
    return prefix


def require_content(content: str) -> str:
    """Raise ContentTooLargeError if ``content`` is not below the size limit."""
    if not isinstance(content, str):
        raise TypeError(f"content must be str, got {type(content).__name__}")
    try:
        size = content_size(content)
    except UnicodeEncodeError as e:
        raise ValueError(f"content is not valid UTF-8 text: {e.reason} at index {e.start}") from e
    if size >= MAX_CONTENT_SIZE:
        raise ContentTooLargeError(size, MAX_CONTENT_SIZE)
    return content


# ---------------------------------------------------------------------------
# Shared lineage state
# ---------------------------------------------------------------------------

class ReadWriteLock:
    """
    Many readers or one writer. Writers are preferred once waiting so a
    stream of readers cannot starve them. Not reentrant.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read(self) -> Generator[None, None, None]:
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write(self) -> Generator[None, None, None]:
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


class VersionClock:
    """
    Hands out strictly increasing UTC timestamps with microsecond resolution.

    Two writes through the same lineage never share a timestamp, even when
    the wall clock has not advanced or has stepped backwards.
    """

    RESOLUTION = timedelta(microseconds=1)

    def __init__(self, now: Optional[Callable[[], datetime]] = None):
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._last: Optional[datetime] = None
        self._lock = threading.Lock()

    def next(self) -> datetime:
        with self._lock:
            stamp = self._now().astimezone(timezone.utc)
            if self._last is not None and stamp <= self._last:
                stamp = self._last + self.RESOLUTION
            self._last = stamp
            return stamp


class StoreLineage:
    """
    State shared by a handle and all handles copied from it.

    Holds the lineage-wide reader/writer lock, the version clock, a share
    count and an optional release callback run when the last share goes.

    Usage:
        lineage = StoreLineage(on_release=engine.dispose)
        lineage.acquire()           # copy()
        if lineage.release():       # close(); True for the last share
            ...
    """

    def __init__(self, on_release: Optional[Callable[[], None]] = None):
        self.lock = ReadWriteLock()
        self.clock = VersionClock()
        self._on_release = on_release
        self._shares = 1
        self._count_lock = threading.Lock()

    @property
    def shares(self) -> int:
        with self._count_lock:
            return self._shares

    @property
    def released(self) -> bool:
        return self.shares == 0

    def acquire(self) -> None:
        """Register one more handle on this lineage."""
        with self._count_lock:
            if self._shares == 0:
                raise RuntimeError("lineage already released")
            self._shares += 1

    def release(self) -> bool:
        """Drop one handle; run the release callback when none remain."""
        with self._count_lock:
            if self._shares == 0:
                return False
            self._shares -= 1
            last = self._shares == 0
        if last and self._on_release is not None:
            self._on_release()
        return last
