"""Document store protocol.

Defines the DocumentStore protocol that all storage backends implement. The
contract is deliberately small: named get/put/delete of pydantic documents,
each annotated with CacheMeta, plus idempotent backend provisioning.
"""

from typing import Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel

from app_keystore.document_store._models import CacheMeta

_D = TypeVar("_D", bound=BaseModel)


@runtime_checkable
class DocumentStore(Protocol):
    """Protocol for document storage backends.

    Implementations: GcsDocumentStore (production), MemoryDocumentStore (testing).

    Backends raise DocumentNotFoundError for missing names and BackendError for
    everything else that goes wrong underneath; backend-specific exception
    types never escape.
    """

    def init_db(self) -> None:
        """Provision structural prerequisites. Safe to call any number of times."""
        ...

    def get(self, name: str, document_type: type[_D]) -> tuple[_D, CacheMeta]:
        """Read and decode a document. Raises DocumentNotFoundError when absent."""
        ...

    def head(self, name: str) -> CacheMeta:
        """Return metadata of a stored document without reading its body."""
        ...

    def put(self, name: str, document: BaseModel) -> CacheMeta:
        """Write a document, unconditionally overwriting any previous version."""
        ...

    def delete(self, name: str) -> CacheMeta:
        """Delete a document and return the metadata of the removed version."""
        ...

    def list_names(self, prefix: str = "") -> list[str]:
        """Return the sorted names of all documents starting with prefix."""
        ...
