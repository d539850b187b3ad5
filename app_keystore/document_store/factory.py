"""Storage locations and the factory turning them into document stores.

A StorageLocation says where documents live: a tagged variant over backend
kind carrying backend-specific configuration. It is resolved exactly once,
at construction, into a concrete DocumentStore.
"""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from app_keystore.document_store._retry import RetryPolicy
from app_keystore.document_store.protocol import DocumentStore
from app_keystore.settings import Settings


class MemoryLocation(BaseModel):
    """Documents live in process memory."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["memory"] = "memory"


class GcsLocation(BaseModel):
    """Documents live in a Google Cloud Storage bucket."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["gcs"] = "gcs"
    bucket: str = Field(min_length=1)
    prefix: str = ""
    project: str = ""
    service_account_file: str = ""


StorageLocation = Annotated[MemoryLocation | GcsLocation, Field(discriminator="kind")]


def create_document_store(location: StorageLocation, *, retry_policy: RetryPolicy | None = None) -> DocumentStore:
    """Create the DocumentStore for a storage location.

    Backends are imported lazily so the memory backend works without cloud
    libraries being importable.
    """
    if isinstance(location, GcsLocation):
        from app_keystore.document_store.gcs import GcsDocumentStore

        return GcsDocumentStore(
            bucket=location.bucket,
            prefix=location.prefix,
            project=location.project,
            service_account_file=location.service_account_file,
            retry_policy=retry_policy,
        )

    from app_keystore.document_store.memory import MemoryDocumentStore

    return MemoryDocumentStore()


def location_from_settings(settings: Settings) -> StorageLocation:
    """Build the storage location configured for this deployment."""
    if settings.storage_backend == "gcs":
        if not settings.gcs_bucket:
            raise ValueError("APP_KEYSTORE_GCS_BUCKET must be set when APP_KEYSTORE_STORAGE_BACKEND=gcs")
        return GcsLocation(
            bucket=settings.gcs_bucket,
            prefix=settings.gcs_prefix,
            project=settings.gcs_project,
            service_account_file=settings.gcs_service_account_file,
        )
    return MemoryLocation()


def create_document_store_from_settings(settings: Settings) -> DocumentStore:
    """Create the DocumentStore described by settings, including its retry policy."""
    policy = RetryPolicy(
        attempts=settings.retry_attempts,
        base_delay=settings.retry_base_delay,
        max_delay=settings.retry_max_delay,
    )
    return create_document_store(location_from_settings(settings), retry_policy=policy)
