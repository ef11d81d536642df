"""
docstore CLI — inspect and maintain a document store.

Commands:
- docstore get NAME               — print the newest version
- docstore history NAME           — list versions, newest first
- docstore put NAME [--file F]    — write a new version (stdin by default)
- docstore ls [PREFIX]            — list documents below PREFIX (default: all)
- docstore revert NAME TIMESTAMP  — discard versions at or after TIMESTAMP
- docstore truncate NAME TIMESTAMP — discard versions at or before TIMESTAMP
- docstore clear --yes            — delete every document
- docstore prune-logs             — delete expired audit log files

The store is chosen by --backend, else $DOCSTORE_BACKEND, else ``backend:``
in docstore.yaml.

Exit codes: 0 ok, 1 document not found, 2 bad input or configuration,
3 storage failure.
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime
from typing import Optional

from docstore.documents.store import DocumentStore
from docstore.engine.config import load_config, open_store
from docstore.engine.errors import (
    ContentTooLargeError,
    DocStoreError,
    DocumentNotFoundError,
    InvalidNameError,
    StoreConfigError,
)
from docstore.engine.logging import (
    LogRetentionManager,
    configure_logging,
    init_logging,
    log,
    log_system_event,
    shutdown_logging,
)

logger = logging.getLogger("docstore.cli")

EXIT_OK = 0
EXIT_NOT_FOUND = 1
EXIT_USAGE = 2
EXIT_FAILURE = 3


def _timestamp(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an ISO-8601 timestamp: {value!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docstore",
        description="Versioned, name-addressable document storage",
    )
    parser.add_argument("--backend", help="Connection URI (e.g. file:///var/lib/docstore)")
    parser.add_argument("--config", help="Path to docstore.yaml")
    parser.add_argument("--log-level", help="Console log level (default: from config)")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    get_parser = subparsers.add_parser("get", help="Print the newest version of a document")
    get_parser.add_argument("name")

    history_parser = subparsers.add_parser("history", help="List every version of a document")
    history_parser.add_argument("name")

    put_parser = subparsers.add_parser("put", help="Write a new version of a document")
    put_parser.add_argument("name")
    put_parser.add_argument("--file", help="Read content from this file instead of stdin")

    ls_parser = subparsers.add_parser("ls", help="List documents below a prefix")
    ls_parser.add_argument("prefix", nargs="?", default="", help="Ancestor name (default: all)")

    for command, help_text in (
        ("revert", "Discard versions at or after TIMESTAMP"),
        ("truncate", "Discard versions at or before TIMESTAMP"),
    ):
        sub = subparsers.add_parser(command, help=help_text)
        sub.add_argument("name")
        sub.add_argument("timestamp", type=_timestamp, help="ISO-8601, e.g. 2026-02-14T09:30:00Z")

    clear_parser = subparsers.add_parser("clear", help="Delete every document")
    clear_parser.add_argument("--yes", action="store_true", help="Confirm deletion")

    subparsers.add_parser("prune-logs", help="Delete audit logs past retention")

    return parser


def main(argv: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_OK

    try:
        config = load_config(args.config)
    except (DocStoreError, ValueError) as e:
        print(f"error: invalid configuration: {e}", file=sys.stderr)
        return EXIT_USAGE

    configure_logging(args.log_level or config.logging.level)

    if args.command == "prune-logs":
        return cmd_prune_logs(config.logging.directory, config.logging.retention_days)

    if args.command == "clear" and not args.yes:
        print("error: clear deletes every document; pass --yes to confirm", file=sys.stderr)
        return EXIT_USAGE

    if config.logging.audit:
        init_logging(
            log_dir=config.logging.directory,
            flush_interval_ms=config.logging.flush_interval_ms,
            flush_batch_size=config.logging.flush_batch_size,
            max_queue_size=config.logging.max_queue_size,
        )
        log(log_system_event("cli_command", {"command": args.command}))

    try:
        with open_store(args.backend) as store:
            return COMMANDS[args.command](store, args)
    except DocumentNotFoundError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_NOT_FOUND
    except (InvalidNameError, ContentTooLargeError, StoreConfigError) as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_USAGE
    except DocStoreError as e:
        logger.debug(repr(e))
        print(f"error: {e}", file=sys.stderr)
        return EXIT_FAILURE
    finally:
        shutdown_logging()


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def cmd_get(store: DocumentStore, args: argparse.Namespace) -> int:
    sys.stdout.write(store.get(args.name).content)
    return EXIT_OK


def cmd_history(store: DocumentStore, args: argparse.Namespace) -> int:
    for doc in store.get_all(args.name):
        print(f"{doc.timestamp.isoformat()}\t{doc.size}")
    return EXIT_OK


def read_content(args: argparse.Namespace) -> str:
    """Content for ``put``, decoded from raw bytes so line endings survive."""
    if args.file:
        with open(args.file, "rb") as f:
            data = f.read()
    else:
        data = sys.stdin.buffer.read()
    return data.decode("utf-8")


def cmd_put(store: DocumentStore, args: argparse.Namespace) -> int:
    try:
        content = read_content(args)
    except (OSError, UnicodeDecodeError) as e:
        print(f"error: cannot read content: {e}", file=sys.stderr)
        return EXIT_USAGE
    doc = store.update(args.name, content)
    print(doc.timestamp.isoformat())
    return EXIT_OK


def cmd_ls(store: DocumentStore, args: argparse.Namespace) -> int:
    for name in store.get_descendants(args.prefix):
        print(name)
    return EXIT_OK


def cmd_revert(store: DocumentStore, args: argparse.Namespace) -> int:
    print(f"discarded {store.revert(args.name, args.timestamp)}")
    return EXIT_OK


def cmd_truncate(store: DocumentStore, args: argparse.Namespace) -> int:
    print(f"discarded {store.truncate(args.name, args.timestamp)}")
    return EXIT_OK


def cmd_clear(store: DocumentStore, args: argparse.Namespace) -> int:
    store.clear()
    print("cleared")
    return EXIT_OK


def cmd_prune_logs(directory: str, retention_days: int) -> int:
    deleted = LogRetentionManager(log_dir=directory, retention_days=retention_days).cleanup()
    print(f"deleted {deleted} log files")
    return EXIT_OK


COMMANDS = {
    "get": cmd_get,
    "history": cmd_history,
    "put": cmd_put,
    "ls": cmd_ls,
    "revert": cmd_revert,
    "truncate": cmd_truncate,
    "clear": cmd_clear,
}


if __name__ == "__main__":
    sys.exit(main())
