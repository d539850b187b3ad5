"""In-memory document store for testing.

Dict-based storage implementing the full DocumentStore protocol. Documents
are kept as encoded bytes so reads exercise the same codec as real backends.
Not for production use: all data is lost when the process exits.
"""

import threading
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TypeVar

from pydantic import BaseModel

from app_keystore.document_store._models import CacheMeta, compute_content_digest, decode_document, encode_document
from app_keystore.exceptions import DocumentNotFoundError

_D = TypeVar("_D", bound=BaseModel)


@dataclass(frozen=True, slots=True)
class _StoredObject:
    data: bytes
    meta: CacheMeta


class MemoryDocumentStore:
    """Dict-based document store for unit tests.

    Fingerprints combine a store-wide generation counter with the content
    digest, so rewriting identical bytes still yields a fresh fingerprint.
    Safe for concurrent use: all dict access happens under one lock.
    """

    def __init__(self) -> None:
        self._objects: dict[str, _StoredObject] = {}
        self._generation = 0
        self._lock = threading.Lock()
        self._initialized = False

    @property
    def initialized(self) -> bool:
        """True once init_db has run at least once."""
        return self._initialized

    def init_db(self) -> None:
        """Nothing to provision in memory; only records that init ran."""
        self._initialized = True

    def get(self, name: str, document_type: type[_D]) -> tuple[_D, CacheMeta]:
        """Decode the stored document."""
        stored = self._lookup(name)
        return decode_document(name, stored.data, document_type), stored.meta

    def head(self, name: str) -> CacheMeta:
        """Return metadata without decoding."""
        return self._lookup(name).meta

    def put(self, name: str, document: BaseModel) -> CacheMeta:
        """Store document bytes under name, replacing any previous version."""
        data = encode_document(document)
        digest = compute_content_digest(data)
        with self._lock:
            self._generation += 1
            meta = CacheMeta(
                fingerprint=f"{self._generation}-{digest[:16]}",
                last_modified=datetime.now(UTC),
                size=len(data),
            )
            self._objects[name] = _StoredObject(data=data, meta=meta)
        return meta

    def delete(self, name: str) -> CacheMeta:
        """Remove name and return the metadata it had."""
        with self._lock:
            stored = self._objects.pop(name, None)
        if stored is None:
            raise DocumentNotFoundError(name)
        return stored.meta

    def list_names(self, prefix: str = "") -> list[str]:
        """Sorted names starting with prefix."""
        with self._lock:
            return sorted(n for n in self._objects if n.startswith(prefix))

    def _lookup(self, name: str) -> _StoredObject:
        with self._lock:
            stored = self._objects.get(name)
        if stored is None:
            raise DocumentNotFoundError(name)
        return stored
