"""App key document store: app records, key sets and the app index over a DocumentStore."""

import logging

from app_keystore.document_store import CacheMeta, DocumentStore
from app_keystore.exceptions import DocumentNotFoundError
from app_keystore.links import Links
from app_keystore.logging import get_keystore_logger
from app_keystore.models import AppIndex, AppKeySet, AppRecord
from app_keystore.settings import settings

logger = get_keystore_logger(__name__)


class AppKeyStore:
    """Typed access to app documents. Names come from the configured Links."""

    def __init__(self, store: DocumentStore, links: Links | None = None) -> None:
        self.store = store
        self.links = links or Links.from_settings(settings)

    def init_db(self, logger: logging.Logger = logger) -> None:
        """Provision the backend and write an empty app index if none exists.

        Idempotent: an existing index is left untouched. Backend failures
        propagate as BackendError.
        """
        self.store.init_db()
        index_name = self.links.app_index_name()
        try:
            meta = self.store.head(index_name)
            logger.info(f"App index {index_name} already present (fingerprint {meta.fingerprint})")
        except DocumentNotFoundError:
            self.store.put(index_name, AppIndex())
            logger.info(f"Created app index {index_name}")

    # --- App index ---

    def get_index(self) -> tuple[AppIndex, CacheMeta]:
        return self.store.get(self.links.app_index_name(), AppIndex)

    def put_index(self, index: AppIndex) -> CacheMeta:
        return self.store.put(self.links.app_index_name(), index)

    # --- App records ---

    def app_exists(self, app: int) -> bool:
        try:
            self.store.head(self.links.app_name(app))
        except DocumentNotFoundError:
            return False
        return True

    def get_app(self, app: int) -> tuple[AppRecord, CacheMeta]:
        return self.store.get(self.links.app_name(app), AppRecord)

    def put_app(self, record: AppRecord) -> CacheMeta:
        return self.store.put(self.links.app_name(record.app), record)

    def delete_app(self, app: int) -> CacheMeta:
        return self.store.delete(self.links.app_name(app))

    # --- Key sets ---

    def get_keys(self, app: int) -> tuple[AppKeySet, CacheMeta]:
        return self.store.get(self.links.app_keys_name(app), AppKeySet)

    def put_keys(self, keys: AppKeySet) -> CacheMeta:
        return self.store.put(self.links.app_keys_name(keys.app), keys)

    def delete_keys(self, app: int) -> CacheMeta:
        return self.store.delete(self.links.app_keys_name(app))
