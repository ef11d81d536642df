"""Unit tests for docstore.engine.logging — FileLogger, AsyncLogQueue, LogRetentionManager."""

import io
import json
import logging
from datetime import date, datetime, timedelta, timezone

import pytest

from docstore.engine.logging import (
    CATEGORIES,
    AsyncLogQueue,
    FileLogger,
    LogEntry,
    LogRetentionManager,
    configure_logging,
    get_log_queue,
    init_logging,
    log,
    log_document_write,
    log_history_discard,
    log_store_cleared,
    log_system_event,
    shutdown_logging,
)

NOW = datetime(2026, 2, 14, 9, 30, tzinfo=timezone.utc)


class TestLogEntry:
    def test_creation(self):
        entry = LogEntry("writes", {"key": "value"})
        assert entry.category == "writes"
        assert entry.data == {"key": "value"}

    def test_invalid_category(self):
        with pytest.raises(ValueError):
            LogEntry("execution", {})

    def test_to_json(self):
        parsed = json.loads(LogEntry("system", {"when": NOW}).to_json())
        assert parsed["when"] == str(NOW)


class TestFileLogger:
    """Test FileLogger file writing."""

    def test_creates_category_dirs(self, tmp_path):
        FileLogger(log_dir=str(tmp_path / "logs"))
        for category in CATEGORIES:
            assert (tmp_path / "logs" / category).is_dir()

    def test_write_creates_file(self, tmp_path):
        logger = FileLogger(log_dir=str(tmp_path / "logs"))
        logger.write(LogEntry("writes", {"name": "/Foo"}))

        files = list((tmp_path / "logs" / "writes").glob("*.jsonl"))
        assert len(files) == 1
        assert files[0].name == f"{date.today().isoformat()}.jsonl"
        assert json.loads(files[0].read_text().strip())["name"] == "/Foo"

    def test_write_batch_groups_by_category(self, tmp_path):
        logger = FileLogger(log_dir=str(tmp_path / "logs"))
        entries = [LogEntry("writes", {"n": i}) for i in range(5)]
        entries.append(LogEntry("maintenance", {"n": 99}))
        logger.write_batch(entries)

        assert [e["n"] for e in logger.read("writes")] == [0, 1, 2, 3, 4]
        assert [e["n"] for e in logger.read("maintenance")] == [99]
        assert logger.read("system") == []

    def test_read_skips_corrupt_lines(self, tmp_path):
        logger = FileLogger(log_dir=str(tmp_path / "logs"))
        logger.write(LogEntry("system", {"ok": 1}))
        path = tmp_path / "logs" / "system" / f"{date.today().isoformat()}.jsonl"
        with open(path, "a", encoding="utf-8") as f:
            f.write("{not json\n\n")
        logger.write(LogEntry("system", {"ok": 2}))
        assert [e["ok"] for e in logger.read("system")] == [1, 2]


class TestAsyncLogQueue:
    def test_stop_drains(self, tmp_path):
        file_logger = FileLogger(log_dir=str(tmp_path / "logs"))
        queue = AsyncLogQueue(file_logger, flush_interval_ms=10)
        queue.start()
        for i in range(20):
            assert queue.push(LogEntry("writes", {"n": i}))
        queue.stop()
        assert sorted(e["n"] for e in file_logger.read("writes")) == list(range(20))

    def test_full_queue_drops(self, tmp_path):
        file_logger = FileLogger(log_dir=str(tmp_path / "logs"))
        queue = AsyncLogQueue(file_logger, max_queue_size=2)
        assert queue.push(LogEntry("writes", {}))
        assert queue.push(LogEntry("writes", {}))
        assert not queue.push(LogEntry("writes", {}))
        assert queue.dropped_count == 1
        queue.stop()
        assert len(file_logger.read("writes")) == 2


class TestLogBuilders:
    """Test convenience log entry builder functions."""

    def test_document_write(self):
        entry = log_document_write("file", "/Foo", NOW, 42)
        assert entry.category == "writes"
        assert entry.data["event"] == "document_updated"
        assert entry.data["backend"] == "file"
        assert entry.data["name"] == "/Foo"
        assert entry.data["version"] == NOW.isoformat()
        assert entry.data["size"] == 42

    def test_history_discard(self):
        entry = log_history_discard("sqlite", "truncate", "/Foo", NOW, 3)
        assert entry.category == "maintenance"
        assert entry.data["event"] == "history_truncate"
        assert entry.data["boundary"] == NOW.isoformat()
        assert entry.data["discarded"] == 3

    def test_store_cleared(self):
        entry = log_store_cleared("memory")
        assert entry.category == "maintenance"
        assert entry.data["event"] == "store_cleared"

    def test_system_event(self):
        entry = log_system_event("startup", {"pid": 1})
        assert entry.category == "system"
        assert entry.data["details"] == {"pid": 1}
        assert "details" not in log_system_event("shutdown").data


class TestLogRetentionManager:
    """Test retention cleanup."""

    def _touch(self, root, category, day):
        path = root / category / f"{day.isoformat()}.jsonl"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("{}\n")
        return path

    def test_cleanup_empty_dir(self, tmp_path):
        assert LogRetentionManager(log_dir=str(tmp_path / "missing")).cleanup() == 0

    def test_deletes_expired_only(self, tmp_path):
        today = date(2026, 6, 1)
        old = self._touch(tmp_path, "writes", today - timedelta(days=31))
        edge = self._touch(tmp_path, "maintenance", today - timedelta(days=30))
        fresh = self._touch(tmp_path, "system", today)
        foreign = tmp_path / "writes" / "notes.txt"
        foreign.write_text("keep")

        mgr = LogRetentionManager(log_dir=str(tmp_path), retention_days=30)
        assert mgr.cleanup(today=today) == 1
        assert not old.exists()
        assert edge.exists()
        assert fresh.exists()
        assert foreign.exists()


class TestGlobalQueue:
    def test_log_without_init_is_noop(self):
        assert get_log_queue() is None
        assert log(log_system_event("ignored")) is False

    def test_init_and_shutdown(self, tmp_path):
        queue = init_logging(log_dir=str(tmp_path / "audit"), flush_interval_ms=10)
        assert get_log_queue() is queue
        assert log(log_system_event("startup")) is True
        shutdown_logging()
        assert get_log_queue() is None
        assert FileLogger(str(tmp_path / "audit")).read("system")[0]["event"] == "startup"

    def test_backends_write_audit_trail(self, tmp_path, store):
        init_logging(log_dir=str(tmp_path / "audit"), flush_interval_ms=10)
        first = store.update("/Foo", "v1")
        store.update("/Foo", "v2")
        store.revert("/Foo", first.timestamp)
        store.clear()
        shutdown_logging()

        audit = FileLogger(str(tmp_path / "audit"))
        writes = audit.read("writes")
        assert [e["name"] for e in writes] == ["/Foo", "/Foo"]
        assert {e["backend"] for e in writes} == {store.scheme}
        events = [e["event"] for e in audit.read("maintenance")]
        assert events == ["history_revert", "store_cleared"]
        assert audit.read("maintenance")[0]["discarded"] == 2


class TestConfigureLogging:
    def test_console_handler(self):
        stream = io.StringIO()
        configure_logging("debug", stream=stream)
        logging.getLogger("docstore.tests").debug("hello from test")
        assert "hello from test" in stream.getvalue()
        assert logging.getLogger("docstore").level == logging.DEBUG

    def test_single_handler(self):
        configure_logging("INFO", stream=io.StringIO())
        configure_logging("INFO", stream=io.StringIO())
        consoles = [
            h for h in logging.getLogger("docstore").handlers
            if getattr(h, "_docstore_console", False)
        ]
        assert len(consoles) == 1
