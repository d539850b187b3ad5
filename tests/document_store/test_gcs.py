"""Tests for GcsDocumentStore against a mocked google-cloud-storage client."""

from datetime import UTC, datetime
from unittest.mock import MagicMock, patch

import pytest
from google.api_core import exceptions as gcs_exceptions
from pydantic import BaseModel
from requests import exceptions as requests_exceptions

from app_keystore.document_store import DocumentStore, RetryPolicy
from app_keystore.document_store.gcs import GcsDocumentStore, create_gcs_client
from app_keystore.exceptions import BackendError, DocumentDecodeError, DocumentNotFoundError

UPDATED = datetime(2026, 1, 2, 3, 4, 5, tzinfo=UTC)


class Note(BaseModel):
    title: str


def _blob(name: str = "docs/n.json", generation: int = 7, data: bytes = b'{"title":"x"}') -> MagicMock:
    blob = MagicMock()
    blob.name = name
    blob.generation = generation
    blob.updated = UPDATED
    blob.size = len(data)
    blob.download_as_bytes.return_value = data
    return blob


@pytest.fixture
def client() -> MagicMock:
    return MagicMock()


@pytest.fixture
def bucket(client: MagicMock) -> MagicMock:
    return client.bucket.return_value


@pytest.fixture
def store(client: MagicMock) -> GcsDocumentStore:
    return GcsDocumentStore(bucket="keystore", prefix="docs", client=client, retry_policy=RetryPolicy(attempts=3, base_delay=0.0))


@pytest.fixture(autouse=True)
def _no_sleep():
    with patch("app_keystore.document_store._retry.time.sleep"):
        yield


class TestConstruction:
    def test_requires_bucket(self, client: MagicMock):
        with pytest.raises(ValueError, match="bucket"):
            GcsDocumentStore(bucket="", client=client)

    def test_binds_bucket(self, store: GcsDocumentStore, client: MagicMock):
        client.bucket.assert_called_once_with("keystore")
        assert store.bucket_name == "keystore"

    def test_satisfies_protocol(self, store: GcsDocumentStore):
        assert isinstance(store, DocumentStore)

    @patch("app_keystore.document_store.gcs.storage.Client")
    def test_client_from_service_account_file(self, mock_client_cls: MagicMock):
        create_gcs_client(project="proj", service_account_file="/secrets/sa.json")
        mock_client_cls.from_service_account_json.assert_called_once_with("/secrets/sa.json", project="proj")

    @patch("app_keystore.document_store.gcs.storage.Client")
    def test_client_from_default_credentials(self, mock_client_cls: MagicMock):
        create_gcs_client()
        mock_client_cls.assert_called_once_with(project=None)


class TestGet:
    def test_get_decodes_and_uses_generation_as_fingerprint(self, store: GcsDocumentStore, bucket: MagicMock):
        blob = _blob()
        bucket.get_blob.return_value = blob

        doc, meta = store.get("n.json", Note)

        assert doc == Note(title="x")
        assert meta.fingerprint == "7"
        assert meta.last_modified == UPDATED
        assert meta.size == len(b'{"title":"x"}')
        bucket.get_blob.assert_called_once_with("docs/n.json")
        blob.download_as_bytes.assert_called_once_with(if_generation_match=7)

    def test_missing_blob_raises_not_found(self, store: GcsDocumentStore, bucket: MagicMock):
        bucket.get_blob.return_value = None
        with pytest.raises(DocumentNotFoundError) as exc_info:
            store.get("n.json", Note)
        assert exc_info.value.name == "n.json"

    def test_not_found_during_download_maps_to_not_found(self, store: GcsDocumentStore, bucket: MagicMock):
        blob = _blob()
        blob.download_as_bytes.side_effect = gcs_exceptions.NotFound("gone")
        bucket.get_blob.return_value = blob
        with pytest.raises(DocumentNotFoundError):
            store.get("n.json", Note)

    def test_transient_errors_are_retried(self, store: GcsDocumentStore, bucket: MagicMock):
        bucket.get_blob.side_effect = [gcs_exceptions.ServiceUnavailable("busy"), _blob()]
        doc, _ = store.get("n.json", Note)
        assert doc.title == "x"
        assert bucket.get_blob.call_count == 2

    def test_generation_race_rereads(self, store: GcsDocumentStore, bucket: MagicMock):
        stale = _blob(generation=7)
        stale.download_as_bytes.side_effect = gcs_exceptions.PreconditionFailed("changed")
        bucket.get_blob.side_effect = [stale, _blob(generation=8)]
        _, meta = store.get("n.json", Note)
        assert meta.fingerprint == "8"

    def test_persistent_failure_surfaces_backend_error(self, store: GcsDocumentStore, bucket: MagicMock):
        bucket.get_blob.side_effect = requests_exceptions.ConnectionError("reset")
        with pytest.raises(BackendError, match="keystore"):
            store.get("n.json", Note)
        assert bucket.get_blob.call_count == 3

    def test_permanent_failure_is_not_retried(self, store: GcsDocumentStore, bucket: MagicMock):
        bucket.get_blob.side_effect = gcs_exceptions.Forbidden("denied")
        with pytest.raises(BackendError):
            store.get("n.json", Note)
        bucket.get_blob.assert_called_once()

    def test_corrupt_object_raises_decode_error(self, store: GcsDocumentStore, bucket: MagicMock):
        bucket.get_blob.return_value = _blob(data=b"not json")
        with pytest.raises(DocumentDecodeError):
            store.get("n.json", Note)


class TestHead:
    def test_head_returns_meta_without_download(self, store: GcsDocumentStore, bucket: MagicMock):
        blob = _blob(generation=11)
        bucket.get_blob.return_value = blob
        meta = store.head("n.json")
        assert meta.fingerprint == "11"
        blob.download_as_bytes.assert_not_called()

    def test_head_missing_raises_not_found(self, store: GcsDocumentStore, bucket: MagicMock):
        bucket.get_blob.return_value = None
        with pytest.raises(DocumentNotFoundError):
            store.head("n.json")


class TestPut:
    def test_put_uploads_json(self, store: GcsDocumentStore, bucket: MagicMock):
        blob = _blob(generation=12)
        bucket.blob.return_value = blob

        meta = store.put("n.json", Note(title="y"))

        bucket.blob.assert_called_once_with("docs/n.json")
        blob.upload_from_string.assert_called_once_with(b'{"title":"y"}', content_type="application/json")
        assert meta.fingerprint == "12"

    def test_put_failure_surfaces_backend_error(self, store: GcsDocumentStore, bucket: MagicMock):
        bucket.blob.return_value.upload_from_string.side_effect = gcs_exceptions.InternalServerError("boom")
        with pytest.raises(BackendError):
            store.put("n.json", Note(title="y"))
        assert bucket.blob.return_value.upload_from_string.call_count == 3

    def test_rejects_empty_name(self, store: GcsDocumentStore):
        with pytest.raises(ValueError, match="Invalid document name"):
            store.put("/", Note(title="y"))


class TestDelete:
    def test_delete_returns_meta_of_removed_version(self, store: GcsDocumentStore, bucket: MagicMock):
        blob = _blob(generation=4)
        bucket.get_blob.return_value = blob
        meta = store.delete("n.json")
        blob.delete.assert_called_once_with(if_generation_match=4)
        assert meta.fingerprint == "4"

    def test_delete_missing_raises_not_found(self, store: GcsDocumentStore, bucket: MagicMock):
        bucket.get_blob.return_value = None
        with pytest.raises(DocumentNotFoundError):
            store.delete("n.json")


class TestListNames:
    def test_strips_store_prefix(self, store: GcsDocumentStore, client: MagicMock):
        client.list_blobs.return_value = [_blob(name="docs/apps/2/app.json"), _blob(name="docs/apps/1/app.json")]
        assert store.list_names("apps/") == ["apps/1/app.json", "apps/2/app.json"]
        client.list_blobs.assert_called_once_with("keystore", prefix="docs/apps/")


class TestInitDb:
    def test_existing_bucket_is_left_alone(self, store: GcsDocumentStore, client: MagicMock):
        client.lookup_bucket.return_value = MagicMock()
        store.init_db()
        client.create_bucket.assert_not_called()

    def test_missing_bucket_is_created(self, store: GcsDocumentStore, client: MagicMock):
        client.lookup_bucket.return_value = None
        store.init_db()
        client.create_bucket.assert_called_once_with("keystore", project=None)

    def test_concurrent_creation_counts_as_success(self, store: GcsDocumentStore, client: MagicMock):
        client.lookup_bucket.return_value = None
        client.create_bucket.side_effect = gcs_exceptions.Conflict("exists")
        store.init_db()

    def test_init_failure_surfaces_backend_error(self, store: GcsDocumentStore, client: MagicMock):
        client.lookup_bucket.side_effect = gcs_exceptions.Forbidden("denied")
        with pytest.raises(BackendError):
            store.init_db()

    def test_delete_bucket(self, store: GcsDocumentStore, bucket: MagicMock):
        store.delete_bucket(force=True)
        bucket.delete.assert_called_once_with(force=True)
