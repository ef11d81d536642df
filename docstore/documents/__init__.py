"""
docstore Documents — names, the Document value type and the store contract.
"""

from docstore.documents.models import MAX_CONTENT_SIZE, Document  # noqa: F401
from docstore.documents.names import (  # noqa: F401
    document_title,
    is_descendant,
    name_to_segments,
    segments_to_name,
    validate_name,
)
from docstore.documents.store import DocumentStore, StoreLineage  # noqa: F401

__all__ = [
    "MAX_CONTENT_SIZE",
    "Document",
    "DocumentStore",
    "StoreLineage",
    "document_title",
    "is_descendant",
    "name_to_segments",
    "segments_to_name",
    "validate_name",
]
