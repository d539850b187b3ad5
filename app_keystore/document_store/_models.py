"""Cache metadata and the JSON codec shared by all document store backends."""

import hashlib
from dataclasses import dataclass
from datetime import datetime
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from app_keystore.exceptions import DocumentDecodeError

__all__ = [
    "CacheMeta",
    "compute_content_digest",
    "decode_document",
    "encode_document",
]

_D = TypeVar("_D", bound=BaseModel)


@dataclass(frozen=True, slots=True)
class CacheMeta:
    """Cache-validation metadata returned by every document read and write.

    fingerprint is an opaque version token. Two reads of an unchanged document
    return the same fingerprint; every successful write produces a new one.
    """

    fingerprint: str
    last_modified: datetime
    size: int = -1


def compute_content_digest(data: bytes) -> str:
    """Hex SHA256 of stored bytes."""
    return hashlib.sha256(data).hexdigest()


def encode_document(document: BaseModel) -> bytes:
    """Serialize a document model to the bytes persisted by a backend."""
    return document.model_dump_json().encode("utf-8")


def decode_document(name: str, data: bytes, document_type: type[_D]) -> _D:
    """Decode stored bytes into document_type, raising DocumentDecodeError on bad content."""
    try:
        return document_type.model_validate_json(data)
    except (ValidationError, UnicodeDecodeError) as e:
        raise DocumentDecodeError(f"document {name!r} is not a valid {document_type.__name__}: {e}") from e
