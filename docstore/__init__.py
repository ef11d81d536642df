"""
docstore — versioned, name-addressable document storage.

One contract (DocumentStore), several backends selected by URI scheme:

    import docstore

    with docstore.new_store("file:///var/lib/docstore") as store:
        store.update("/Foo/Bar", "hello")
        store.get("/Foo/Bar").content   # "hello"

Importing the package registers the built-in backends: file, memory,
postgres/postgresql/postgresql+psycopg2 and sqlite.
"""

__version__ = "1.0.0"

from docstore.documents import (  # noqa: E402
    MAX_CONTENT_SIZE,
    Document,
    DocumentStore,
    name_to_segments,
    segments_to_name,
    validate_name,
)
from docstore.engine.config import open_store  # noqa: E402
from docstore.engine.errors import (  # noqa: E402
    ContentTooLargeError,
    DocStoreError,
    DocumentNotFoundError,
    InvalidNameError,
    StorageBackendError,
    StoreClosedError,
    StoreConfigError,
)
from docstore.engine.registry import new_store, register_store  # noqa: E402

from docstore import backends  # noqa: E402,F401

__all__ = [
    "MAX_CONTENT_SIZE",
    "Document",
    "DocumentStore",
    "name_to_segments",
    "segments_to_name",
    "validate_name",
    "open_store",
    "new_store",
    "register_store",
    "DocStoreError",
    "DocumentNotFoundError",
    "InvalidNameError",
    "ContentTooLargeError",
    "StoreClosedError",
    "StoreConfigError",
    "StorageBackendError",
]
