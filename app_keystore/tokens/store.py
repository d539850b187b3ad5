"""Token document store: cached app and install tokens over a DocumentStore."""

import logging

from app_keystore.document_store import CacheMeta, DocumentStore
from app_keystore.links import Links
from app_keystore.logging import get_keystore_logger
from app_keystore.models import AppToken, InstallToken
from app_keystore.settings import settings

logger = get_keystore_logger(__name__)


class TokenDocStore:
    """Typed access to token documents. Names come from the configured Links."""

    def __init__(self, store: DocumentStore, links: Links | None = None) -> None:
        self.store = store
        self.links = links or Links.from_settings(settings)

    def init_db(self, logger: logging.Logger = logger) -> None:
        """No-op: token documents are created on demand by the refresh protocol."""

    def app_token_name(self, app: int) -> str:
        return self.links.app_token_name(app)

    def install_token_name(self, app: int, install: int) -> str:
        return self.links.install_token_name(app, install)

    def get_app_token_doc(self, app: int) -> tuple[AppToken, CacheMeta]:
        return self.store.get(self.app_token_name(app), AppToken)

    def get_install_token_doc(self, app: int, install: int) -> tuple[InstallToken, CacheMeta]:
        return self.store.get(self.install_token_name(app, install), InstallToken)

    def put_app_token_doc(self, token: AppToken) -> CacheMeta:
        return self.store.put(self.app_token_name(token.app), token)

    def put_install_token_doc(self, token: InstallToken) -> CacheMeta:
        return self.store.put(self.install_token_name(token.app, token.install), token)

    def delete_app_token_doc(self, app: int) -> CacheMeta:
        return self.store.delete(self.app_token_name(app))

    def delete_install_token_doc(self, app: int, install: int) -> CacheMeta:
        return self.store.delete(self.install_token_name(app, install))
