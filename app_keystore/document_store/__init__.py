"""Document store protocol and backends for key and token documents."""

from ._models import CacheMeta
from ._retry import RetryPolicy, retry
from .factory import (
    GcsLocation,
    MemoryLocation,
    StorageLocation,
    create_document_store,
    create_document_store_from_settings,
    location_from_settings,
)
from .memory import MemoryDocumentStore
from .protocol import DocumentStore

__all__ = [
    "CacheMeta",
    "DocumentStore",
    "GcsLocation",
    "MemoryDocumentStore",
    "MemoryLocation",
    "RetryPolicy",
    "StorageLocation",
    "create_document_store",
    "create_document_store_from_settings",
    "location_from_settings",
    "retry",
]
