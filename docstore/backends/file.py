"""
docstore Filesystem Backend — scheme ``file``.

    store = new_store("file:///var/lib/docstore")

A document is a directory at the path given by its segments; each version
is a file inside that directory named by its UTC timestamp:

    /var/lib/docstore/Foo/Bar/2026-02-14T09:30:00.123456Z

The timestamp format is fixed-width, so sorting file names sorts versions
chronologically and no separate index is needed. Child documents live in
subdirectories of their parent's directory; only regular files count as
versions.

Limitations (development use only):
- one reader/writer lock per lineage covers every document; independent
  stores opened on the same directory do not coordinate
- locks are taken without timeouts
- the layout is an implementation detail, not a compatibility promise
- a child whose last segment is a version file name of its parent, such
  as "/Foo/2026-02-14T09:30:00.123456Z" while that version of "/Foo"
  exists, cannot be written; update() raises StorageBackendError

The path must be absolute and the host empty. "file://docs/wiki" is
rejected, because "docs" would be parsed as the host.
"""

from __future__ import annotations

import logging
import os
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Tuple

from pydantic import ValidationError

from docstore.documents.models import Document, as_utc
from docstore.documents.names import name_to_segments, segments_to_name, validate_name
from docstore.documents.store import (
    StoreLineage,
    require_content,
    require_name,
    require_prefix,
)
from docstore.engine import logging as audit
from docstore.engine.config import FileStoreConfig, get_config
from docstore.engine.errors import (
    DocumentNotFoundError,
    StorageBackendError,
    StoreClosedError,
    StoreConfigError,
)
from docstore.engine.registry import StoreURI, register_store

logger = logging.getLogger("docstore.backends.file")

# Like RFC 3339 with trailing zeros kept, so every name has the same width.
VERSION_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def format_version(timestamp: datetime) -> str:
    """File name for a version written at ``timestamp``."""
    return timestamp.astimezone(timezone.utc).strftime(VERSION_FORMAT)


def parse_version(filename: str) -> datetime:
    """Inverse of format_version(). Raises ValueError on foreign names."""
    return datetime.strptime(filename, VERSION_FORMAT).replace(tzinfo=timezone.utc)


class FileDocumentStore:
    """DocumentStore backed by a directory tree on the local filesystem."""

    scheme = "file"

    def __init__(
        self,
        root: Path,
        config: Optional[FileStoreConfig] = None,
        lineage: Optional[StoreLineage] = None,
    ):
        self._root = Path(root)
        self._config = config or FileStoreConfig()
        self._lineage = lineage or StoreLineage()
        self._closed = False

    @classmethod
    def from_uri(cls, uri: StoreURI) -> "FileDocumentStore":
        if uri.host:
            raise StoreConfigError(
                f"unexpected URI host {uri.host!r} (use file:///absolute/path)",
                uri=uri.raw,
            )
        path = uri.unquoted_path
        if not path or not os.path.isabs(path):
            raise StoreConfigError(f"file store path must be absolute, got {path!r}", uri=uri.raw)
        root = Path(os.path.normpath(path))
        if root == Path(root.anchor):
            raise StoreConfigError("file store cannot be rooted at the filesystem root", uri=uri.raw)
        logger.info(f"File store rooted at {root}")
        return cls(root, config=get_config().files)

    @property
    def root(self) -> Path:
        return self._root

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self) -> None:
        if self._closed:
            raise StoreClosedError(scheme=self.scheme)

    def copy(self) -> "FileDocumentStore":
        self._check_open()
        self._lineage.acquire()
        return FileDocumentStore(self._root, config=self._config, lineage=self._lineage)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._lineage.release()

    def __enter__(self) -> "FileDocumentStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------

    def _doc_dir(self, name: str) -> Path:
        return self._root.joinpath(*name_to_segments(name))

    def _error(self, operation: str, exc: BaseException, **context) -> StorageBackendError:
        return StorageBackendError(
            f"file store {operation} failed: {exc}",
            backend=self.scheme,
            operation=operation,
            root=str(self._root),
            **context,
        )

    def _list_versions(self, name: str, operation: str) -> List[Tuple[str, datetime]]:
        """Version files of ``name`` as (filename, timestamp), oldest first."""
        doc_dir = self._doc_dir(name)
        try:
            entries = [e.name for e in os.scandir(doc_dir) if e.is_file(follow_symlinks=False)]
        except (FileNotFoundError, NotADirectoryError):
            return []
        except OSError as e:
            raise self._error(operation, e, name=name) from e

        versions = []
        for filename in sorted(entries):
            try:
                versions.append((filename, parse_version(filename)))
            except ValueError as e:
                raise self._error(
                    operation, ValueError(f"malformed version file {filename!r}"), name=name
                ) from e
        return versions

    def _read(self, name: str, filename: str, timestamp: datetime, operation: str) -> Document:
        path = self._doc_dir(name) / filename
        try:
            content = path.read_bytes().decode("utf-8")
            return Document(name=name, content=content, timestamp=timestamp)
        except (OSError, UnicodeDecodeError, ValidationError) as e:
            raise self._error(operation, e, name=name, version=filename) from e

    def _prune(self, directory: Path) -> None:
        """Remove ``directory`` and its ancestors below the root while empty."""
        while directory != self._root and self._root in directory.parents:
            if any(directory.iterdir()):
                return
            directory.rmdir()
            directory = directory.parent

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------

    def get(self, name: str) -> Document:
        self._check_open()
        require_name(name)
        with self._lineage.lock.read():
            versions = self._list_versions(name, "get")
            if not versions:
                raise DocumentNotFoundError(name)
            filename, timestamp = versions[-1]
            return self._read(name, filename, timestamp, "get")

    def get_all(self, name: str) -> List[Document]:
        self._check_open()
        require_name(name)
        with self._lineage.lock.read():
            versions = self._list_versions(name, "get_all")
            if not versions:
                raise DocumentNotFoundError(name)
            return [
                self._read(name, filename, timestamp, "get_all")
                for filename, timestamp in reversed(versions)
            ]

    def get_descendants(self, prefix: str) -> List[str]:
        self._check_open()
        require_prefix(prefix)
        base = self._doc_dir(prefix) if prefix else self._root
        base_segments = name_to_segments(prefix)

        def _raise(exc: OSError) -> None:
            raise exc

        names = []
        with self._lineage.lock.read():
            if not base.is_dir():
                return []
            try:
                for dirpath, _dirnames, filenames in os.walk(base, onerror=_raise):
                    current = Path(dirpath)
                    if current == base or not filenames:
                        continue
                    name = segments_to_name(base_segments + list(current.relative_to(base).parts))
                    if not validate_name(name):
                        logger.warning(f"Skipping directory with invalid name: {current}")
                        continue
                    names.append(name)
            except OSError as e:
                raise self._error("get_descendants", e, prefix=prefix) from e
        return sorted(names)

    # -------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------

    def update(self, name: str, content: str) -> Document:
        self._check_open()
        require_name(name)
        require_content(content)
        data = content.encode("utf-8")
        doc_dir = self._doc_dir(name)

        with self._lineage.lock.write():
            timestamp = self._lineage.clock.next()
            path = doc_dir / format_version(timestamp)
            try:
                os.makedirs(doc_dir, mode=self._config.dir_mode, exist_ok=True)
                fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, self._config.file_mode)
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
            except OSError as e:
                raise self._error("update", e, name=name) from e

        doc = Document(name=name, content=content, timestamp=timestamp)
        logger.debug(f"Updated {name} -> {path}")
        audit.log(audit.log_document_write(self.scheme, name, doc.timestamp, len(data)))
        return doc

    def revert(self, name: str, timestamp: datetime) -> int:
        return self._discard(name, timestamp, "revert")

    def truncate(self, name: str, timestamp: datetime) -> int:
        return self._discard(name, timestamp, "truncate")

    def _discard(self, name: str, timestamp: datetime, operation: str) -> int:
        """
        Delete a contiguous run of versions: newest-first while at or after
        the boundary (revert), or oldest-first while at or before it (truncate).
        """
        self._check_open()
        require_name(name)
        boundary = as_utc(timestamp)
        doc_dir = self._doc_dir(name)
        discarded = 0

        with self._lineage.lock.write():
            versions = self._list_versions(name, operation)
            if not versions:
                raise DocumentNotFoundError(name)

            if operation == "revert":
                doomed = [f for f, ts in reversed(versions) if ts >= boundary]
            else:
                doomed = [f for f, ts in versions if ts <= boundary]

            try:
                for filename in doomed:
                    (doc_dir / filename).unlink()
                    discarded += 1
                if discarded == len(versions):
                    self._prune(doc_dir)
            except OSError as e:
                raise self._error(operation, e, name=name, discarded=discarded) from e

        logger.info(f"{operation} {name} to {boundary.isoformat()}: {discarded} discarded")
        audit.log(audit.log_history_discard(self.scheme, operation, name, boundary, discarded))
        return discarded

    def clear(self) -> None:
        self._check_open()
        with self._lineage.lock.write():
            try:
                if self._root.is_dir():
                    for child in self._root.iterdir():
                        if child.is_dir() and not child.is_symlink():
                            shutil.rmtree(child)
                        else:
                            child.unlink()
            except OSError as e:
                raise self._error("clear", e) from e
        logger.info(f"Cleared file store {self._root}")
        audit.log(audit.log_store_cleared(self.scheme))


register_store("file", FileDocumentStore.from_uri)
