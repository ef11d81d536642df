"""
docstore Logging — console setup plus a JSON-lines audit trail of writes.

Implements:
- configure_logging: stdlib console logging for the CLI
- FileLogger: per-category audit files, rotated daily
- AsyncLogQueue: in-memory queue with background flush (100ms / 50 entries)
- Entry builders for writes, history discards, clears and system events
- LogRetentionManager: deletes audit files past their retention

Audit layout:
    {directory}/{category}/{YYYY-MM-DD}.jsonl

Backends push entries through log(); when the global queue has not been
initialised the call is a no-op, so audit logging costs nothing unless
enabled in docstore.yaml.
"""

from __future__ import annotations

import json
import logging
import sys
import threading
import time
from collections import defaultdict
from datetime import date, datetime, timezone
from pathlib import Path
from queue import Empty, Full, Queue
from typing import Any, Dict, List, Optional

logger = logging.getLogger("docstore.engine.logging")

CATEGORIES = ("writes", "maintenance", "system")

DEFAULT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(level: str = "INFO", stream: Any = None) -> None:
    """Send docstore.* log records to ``stream`` (stderr by default)."""
    root = logging.getLogger("docstore")
    root.setLevel(level.upper())
    if not any(getattr(h, "_docstore_console", False) for h in root.handlers):
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
        handler._docstore_console = True
        root.addHandler(handler)


class LogEntry:
    """A structured audit entry destined for one category file."""

    __slots__ = ("category", "data")

    def __init__(self, category: str, data: Dict[str, Any]):
        if category not in CATEGORIES:
            raise ValueError(f"Invalid log category: {category}. Valid: {CATEGORIES}")
        self.category = category
        self.data = data

    def to_json(self) -> str:
        return json.dumps(self.data, default=str, separators=(",", ":"))


class FileLogger:
    """
    Writes audit entries to per-category files, one file per day.

    Thread-safe — uses a lock per file path.
    """

    def __init__(self, log_dir: str = ".docstore/logs"):
        self._log_dir = Path(log_dir)
        self._file_locks: Dict[str, threading.Lock] = defaultdict(threading.Lock)
        for category in CATEGORIES:
            (self._log_dir / category).mkdir(parents=True, exist_ok=True)

    def write(self, entry: LogEntry) -> None:
        """Write a single entry to the appropriate file."""
        self.write_batch([entry])

    def write_batch(self, entries: List[LogEntry]) -> None:
        """Write a batch of entries, grouping by file path."""
        grouped: Dict[str, List[LogEntry]] = defaultdict(list)
        for entry in entries:
            grouped[str(self._resolve_path(entry.category))].append(entry)

        for file_path, batch in grouped.items():
            with self._file_locks[file_path]:
                with open(file_path, "a", encoding="utf-8") as f:
                    for entry in batch:
                        f.write(entry.to_json())
                        f.write("\n")

    def _resolve_path(self, category: str) -> Path:
        return self._log_dir / category / f"{date.today().isoformat()}.jsonl"

    @property
    def log_dir(self) -> Path:
        return self._log_dir

    def read(self, category: str, day: Optional[date] = None) -> List[Dict[str, Any]]:
        """Read every entry of one category for ``day`` (default today)."""
        path = self._log_dir / category / f"{(day or date.today()).isoformat()}.jsonl"
        if not path.exists():
            return []
        entries: List[Dict[str, Any]] = []
        with open(path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    entries.append(json.loads(line))
                except json.JSONDecodeError:
                    logger.warning("Skipping corrupt audit line in %s", path)
        return entries


class AsyncLogQueue:
    """
    In-memory queue with a background flush thread.

    Entries are pushed non-blocking. The thread flushes to FileLogger every
    flush_interval_ms or when flush_batch_size entries accumulate.
    """

    def __init__(
        self,
        file_logger: FileLogger,
        flush_interval_ms: int = 100,
        flush_batch_size: int = 50,
        max_queue_size: int = 10000,
    ):
        self._logger = file_logger
        self._flush_interval = flush_interval_ms / 1000.0
        self._flush_batch_size = flush_batch_size
        self._queue: Queue[LogEntry] = Queue(maxsize=max_queue_size)
        self._running = False
        self._flush_thread: Optional[threading.Thread] = None
        self._dropped_count = 0

    @property
    def dropped_count(self) -> int:
        return self._dropped_count

    def start(self) -> None:
        """Start the background flush thread."""
        if self._running:
            return
        self._running = True
        self._flush_thread = threading.Thread(
            target=self._flush_loop,
            name="docstore-audit-flush",
            daemon=True,
        )
        self._flush_thread.start()
        logger.debug("Audit log queue started")

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the flush thread and drain remaining entries."""
        self._running = False
        if self._flush_thread and self._flush_thread.is_alive():
            self._flush_thread.join(timeout=timeout)
        self._drain()
        logger.debug(f"Audit log queue stopped (dropped: {self._dropped_count})")

    def push(self, entry: LogEntry) -> bool:
        """Queue an entry. Returns False if it was dropped (queue full)."""
        try:
            self._queue.put_nowait(entry)
            return True
        except Full:
            self._dropped_count += 1
            return False

    def _flush_loop(self) -> None:
        while self._running:
            batch = self._collect_batch()
            if batch:
                try:
                    self._logger.write_batch(batch)
                except OSError as e:
                    logger.error(f"Audit log flush error: {e}")
            else:
                time.sleep(self._flush_interval)

    def _collect_batch(self) -> List[LogEntry]:
        batch: List[LogEntry] = []
        deadline = time.monotonic() + self._flush_interval

        while len(batch) < self._flush_batch_size:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            try:
                batch.append(self._queue.get(timeout=min(remaining, 0.01)))
            except Empty:
                if batch:
                    break
        return batch

    def _drain(self) -> None:
        batch: List[LogEntry] = []
        while True:
            try:
                batch.append(self._queue.get_nowait())
            except Empty:
                break
        if batch:
            self._logger.write_batch(batch)


# ---------------------------------------------------------------------------
# Log Entry Builders
# ---------------------------------------------------------------------------

def _base_entry(event: str, backend: str, **extra: Any) -> Dict[str, Any]:
    entry: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "event": event,
        "backend": backend,
    }
    entry.update(extra)
    return entry


def log_document_write(backend: str, name: str, version: datetime, size: int) -> LogEntry:
    """Build an entry for a new version appended by update()."""
    data = _base_entry(
        "document_updated",
        backend,
        name=name,
        version=version.isoformat(),
        size=size,
    )
    return LogEntry("writes", data)


def log_history_discard(
    backend: str,
    operation: str,
    name: str,
    boundary: datetime,
    discarded: int,
) -> LogEntry:
    """Build an entry for revert() / truncate()."""
    data = _base_entry(
        f"history_{operation}",
        backend,
        name=name,
        boundary=boundary.isoformat(),
        discarded=discarded,
    )
    return LogEntry("maintenance", data)


def log_store_cleared(backend: str) -> LogEntry:
    return LogEntry("maintenance", _base_entry("store_cleared", backend))


def log_system_event(event: str, details: Optional[Dict[str, Any]] = None) -> LogEntry:
    """Build a system event entry (startup, shutdown, config changes)."""
    data = _base_entry(event, "system")
    if details:
        data["details"] = details
    return LogEntry("system", data)


# ---------------------------------------------------------------------------
# Log Cleanup / Retention
# ---------------------------------------------------------------------------

class LogRetentionManager:
    """Deletes audit files older than the retention period."""

    def __init__(self, log_dir: str = ".docstore/logs", retention_days: int = 90):
        self._log_dir = Path(log_dir)
        self._retention = retention_days

    def cleanup(self, today: Optional[date] = None) -> int:
        """Delete expired files. Returns the number of files removed."""
        today = today or date.today()
        deleted = 0

        for category in CATEGORIES:
            cat_dir = self._log_dir / category
            if not cat_dir.is_dir():
                continue
            for file_path in cat_dir.iterdir():
                if not file_path.is_file():
                    continue
                file_date = self._parse_file_date(file_path)
                if file_date is None:
                    continue
                if (today - file_date).days > self._retention:
                    file_path.unlink()
                    deleted += 1

        logger.info(f"Audit log cleanup: {deleted} files deleted")
        return deleted

    @staticmethod
    def _parse_file_date(file_path: Path) -> Optional[date]:
        """Extract date from a filename like 2026-02-12.jsonl."""
        try:
            return date.fromisoformat(file_path.name.split(".")[0])
        except ValueError:
            return None


# ---------------------------------------------------------------------------
# Convenience: Global Log Queue Singleton
# ---------------------------------------------------------------------------

_global_queue: Optional[AsyncLogQueue] = None


def init_logging(
    log_dir: str = ".docstore/logs",
    flush_interval_ms: int = 100,
    flush_batch_size: int = 50,
    max_queue_size: int = 10000,
) -> AsyncLogQueue:
    """Initialize the global audit queue."""
    global _global_queue
    if _global_queue is not None:
        _global_queue.stop()
    _global_queue = AsyncLogQueue(
        file_logger=FileLogger(log_dir=log_dir),
        flush_interval_ms=flush_interval_ms,
        flush_batch_size=flush_batch_size,
        max_queue_size=max_queue_size,
    )
    _global_queue.start()
    return _global_queue


def get_log_queue() -> Optional[AsyncLogQueue]:
    return _global_queue


def log(entry: LogEntry) -> bool:
    """Push an audit entry to the global queue. No-op when not initialised."""
    if _global_queue is None:
        return False
    return _global_queue.push(entry)


def shutdown_logging() -> None:
    """Flush and stop the global audit queue."""
    global _global_queue
    if _global_queue:
        _global_queue.stop()
        _global_queue = None
