"""Google Cloud Storage backed document store for production use.

Each document is one JSON object named ``{prefix}/{document name}`` inside a
single bucket. The object generation serves as the CacheMeta fingerprint:
GCS assigns a new generation on every successful write.

Transient failures (throttling, 5xx, timeouts, dropped connections) are
retried with exponential backoff. Reads are idempotent; puts simply
overwrite, so retrying them is safe too. Everything that still fails is
surfaced as BackendError, and missing objects as DocumentNotFoundError.
"""

from datetime import UTC, datetime
from typing import Any, Callable, TypeVar

from google.api_core import exceptions as gcs_exceptions
from google.cloud import storage
from pydantic import BaseModel
from requests import exceptions as requests_exceptions

from app_keystore.document_store._models import CacheMeta, decode_document, encode_document
from app_keystore.document_store._retry import RetryPolicy, retry
from app_keystore.exceptions import BackendError, DocumentNotFoundError
from app_keystore.logging import get_keystore_logger

logger = get_keystore_logger(__name__)

_D = TypeVar("_D", bound=BaseModel)
T = TypeVar("T")

_TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (
    gcs_exceptions.TooManyRequests,
    gcs_exceptions.InternalServerError,
    gcs_exceptions.BadGateway,
    gcs_exceptions.ServiceUnavailable,
    gcs_exceptions.GatewayTimeout,
    gcs_exceptions.DeadlineExceeded,
    requests_exceptions.ConnectionError,
    requests_exceptions.Timeout,
)

# A concurrent overwrite between metadata fetch and download trips the
# generation precondition; re-reading picks up the new version.
_READ_RETRY_ERRORS = (*_TRANSIENT_ERRORS, gcs_exceptions.PreconditionFailed)

_BACKEND_ERRORS = (gcs_exceptions.GoogleAPIError, requests_exceptions.RequestException)

CONTENT_TYPE = "application/json"


def _norm_rel(path: str) -> str:
    """Normalize path to POSIX-style relative format without empty or dot segments."""
    if not path:
        return ""
    parts = [p for p in path.replace("\\", "/").split("/") if p not in ("", ".")]
    return "/".join(parts)


def create_gcs_client(*, project: str = "", service_account_file: str = "") -> storage.Client:
    """Build a storage client from a service account file, or Application Default Credentials."""
    if service_account_file:
        return storage.Client.from_service_account_json(service_account_file, project=project or None)
    return storage.Client(project=project or None)


def _meta_from_blob(blob: Any) -> CacheMeta:
    return CacheMeta(
        fingerprint=str(blob.generation),
        last_modified=blob.updated or datetime.now(UTC),
        size=blob.size if blob.size is not None else -1,
    )


class GcsDocumentStore:
    """Document store on a single GCS bucket.

    The storage client is shared by all in-flight requests; google-cloud-storage
    clients are safe for concurrent use.
    """

    def __init__(
        self,
        *,
        bucket: str,
        prefix: str = "",
        project: str = "",
        service_account_file: str = "",
        retry_policy: RetryPolicy | None = None,
        client: storage.Client | None = None,
    ) -> None:
        if not bucket:
            raise ValueError("GcsDocumentStore requires a bucket name")
        self._client = client or create_gcs_client(project=project, service_account_file=service_account_file)
        self._bucket_name = bucket
        self._project = project or None
        self._prefix = _norm_rel(prefix)
        self._retry = retry_policy or RetryPolicy()
        self._bucket = self._client.bucket(bucket)

    @property
    def bucket_name(self) -> str:
        return self._bucket_name

    def _object_name(self, name: str) -> str:
        rel = _norm_rel(name)
        if not rel:
            raise ValueError(f"Invalid document name: {name!r}")
        return f"{self._prefix}/{rel}" if self._prefix else rel

    def _call(
        self,
        name: str,
        func: Callable[..., T],
        *args: Any,
        retry_on: tuple[type[BaseException], ...] = _TRANSIENT_ERRORS,
    ) -> T:
        """Run func with retries, translating GCS exceptions into keystore errors."""
        try:
            return retry(self._retry, retry_on=retry_on)(func)(*args)
        except gcs_exceptions.NotFound as e:
            raise DocumentNotFoundError(name) from e
        except _BACKEND_ERRORS as e:
            raise BackendError(f"GCS operation on {name!r} in bucket {self._bucket_name!r} failed: {e}") from e

    # --- Provisioning ---

    def init_db(self) -> None:
        """Create the bucket unless it already exists. Idempotent."""
        try:
            existing = retry(self._retry, retry_on=_TRANSIENT_ERRORS)(self._client.lookup_bucket)(self._bucket_name)
            if existing is not None:
                logger.debug(f"Bucket {self._bucket_name} already exists")
                return
            self.create_bucket()
        except _BACKEND_ERRORS as e:
            raise BackendError(f"Failed to initialize bucket {self._bucket_name!r}: {e}") from e

    def create_bucket(self) -> None:
        """Create the bucket. A bucket that appeared concurrently counts as success."""
        try:
            self._client.create_bucket(self._bucket_name, project=self._project)
            logger.info(f"Created bucket {self._bucket_name}")
        except gcs_exceptions.Conflict:
            logger.info(f"Bucket {self._bucket_name} was created concurrently")
        except _BACKEND_ERRORS as e:
            raise BackendError(f"Failed to create bucket {self._bucket_name!r}: {e}") from e

    def delete_bucket(self, *, force: bool = False) -> None:
        """Delete the bucket, with force=True also deleting the objects it holds."""
        try:
            self._bucket.delete(force=force)
            logger.info(f"Deleted bucket {self._bucket_name}")
        except _BACKEND_ERRORS as e:
            raise BackendError(f"Failed to delete bucket {self._bucket_name!r}: {e}") from e

    # --- Documents ---

    def get(self, name: str, document_type: type[_D]) -> tuple[_D, CacheMeta]:
        """Fetch metadata, then download exactly that generation."""
        object_name = self._object_name(name)

        def _download() -> tuple[bytes, CacheMeta]:
            blob = self._bucket.get_blob(object_name)
            if blob is None:
                raise gcs_exceptions.NotFound(object_name)
            data = blob.download_as_bytes(if_generation_match=blob.generation)
            return data, _meta_from_blob(blob)

        data, meta = self._call(name, _download, retry_on=_READ_RETRY_ERRORS)
        return decode_document(name, data, document_type), meta

    def head(self, name: str) -> CacheMeta:
        object_name = self._object_name(name)

        def _stat() -> CacheMeta:
            blob = self._bucket.get_blob(object_name)
            if blob is None:
                raise gcs_exceptions.NotFound(object_name)
            return _meta_from_blob(blob)

        return self._call(name, _stat)

    def put(self, name: str, document: BaseModel) -> CacheMeta:
        """Upload the document; the response carries the new generation."""
        object_name = self._object_name(name)
        data = encode_document(document)

        def _upload() -> CacheMeta:
            blob = self._bucket.blob(object_name)
            blob.upload_from_string(data, content_type=CONTENT_TYPE)
            return _meta_from_blob(blob)

        return self._call(name, _upload)

    def delete(self, name: str) -> CacheMeta:
        object_name = self._object_name(name)

        def _delete() -> CacheMeta:
            blob = self._bucket.get_blob(object_name)
            if blob is None:
                raise gcs_exceptions.NotFound(object_name)
            blob.delete(if_generation_match=blob.generation)
            return _meta_from_blob(blob)

        return self._call(name, _delete, retry_on=_READ_RETRY_ERRORS)

    def list_names(self, prefix: str = "") -> list[str]:
        """List document names below prefix, relative to the store prefix."""
        rel_prefix = _norm_rel(prefix)
        if prefix.endswith("/") and rel_prefix:
            rel_prefix += "/"
        full_prefix = f"{self._prefix}/{rel_prefix}" if self._prefix else rel_prefix
        strip = len(self._prefix) + 1 if self._prefix else 0

        def _list() -> list[str]:
            return [blob.name[strip:] for blob in self._client.list_blobs(self._bucket_name, prefix=full_prefix)]

        return sorted(self._call(prefix or "/", _list))
