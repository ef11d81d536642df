"""docstore Backends — importing this package registers every built-in scheme."""

from docstore.backends.file import FileDocumentStore  # noqa: F401
from docstore.backends.memory import MemoryDocumentStore  # noqa: F401
from docstore.backends.sql import SqlDocumentStore  # noqa: F401

__all__ = [
    "FileDocumentStore",
    "MemoryDocumentStore",
    "SqlDocumentStore",
]
