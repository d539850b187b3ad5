"""App key lifecycle and JWT issuance.

AppKeyService validates and persists apps with their RSA signing keys, and
signs JWT assertions with an app's active key. The active key is the
explicitly activated one while it stays usable, otherwise the most recently
added key that is neither revoked nor expired.
"""

import logging
from datetime import UTC, datetime
from typing import Callable

from app_keystore.exceptions import DocumentNotFoundError, InvalidArgumentError, NotFoundError
from app_keystore.keys.jwt import check_algorithm, sign_jwt
from app_keystore.keys.keyutils import key_fingerprint, parse_private_key
from app_keystore.keys.store import AppKeyStore
from app_keystore.logging import get_keystore_logger
from app_keystore.models import (
    AddAppRequest,
    AppIndex,
    AppKey,
    AppKeySet,
    AppRecord,
    AppResponse,
    SignJwtRequest,
    SignJwtResponse,
)

logger = get_keystore_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def select_active_key(record: AppRecord, keys: AppKeySet, now: datetime) -> AppKey | None:
    """Pick the signing key for an app, or None when no key is usable."""
    if record.active_key is not None:
        pinned = keys.find(record.active_key)
        if pinned is not None and pinned.meta.is_usable(now):
            return pinned
    return next((k for k in reversed(keys.keys) if k.meta.is_usable(now)), None)


class AppKeyService:
    """Orchestrates app registration, key management and JWT signing.

    Holds its AppKeyStore by composition; tests inject a store over a
    MemoryDocumentStore.
    """

    def __init__(self, store: AppKeyStore, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self.store = store
        self._clock = clock

    def init_db(self, logger: logging.Logger = logger) -> None:
        """Provision backing storage. Idempotent; backend failures are fatal."""
        self.store.init_db(logger)

    # --- Apps ---

    def add_app(self, request: AddAppRequest, logger: logging.Logger = logger) -> AppResponse:
        """Register a new app with its initial keys.

        The index entry and key set are written before the app record, which
        is the document app_exists checks. A failed write leaves no record, so
        the same request can simply be retried.

        Raises:
            InvalidArgumentError: App id 0, app already registered, a key that
                does not parse, a fingerprint that does not match its key, or
                the same fingerprint twice.
            BackendError: Persisting the app failed.
        """
        if request.app == 0:
            logger.error(f"Attempted to add app {request.app}")
            raise InvalidArgumentError("app id 0 is not allowed")
        if self.store.app_exists(request.app):
            logger.error(f"Attempted to add existing app {request.app}")
            raise InvalidArgumentError(f"app {request.app} already exists")

        now = self._clock()
        keys: list[AppKey] = []
        for key in request.keys:
            checked = self._check_key(key, now)
            if any(k.meta.fingerprint == checked.meta.fingerprint for k in keys):
                raise InvalidArgumentError(f"duplicate key fingerprint {checked.meta.fingerprint}")
            keys.append(checked)

        key_set = AppKeySet(app=request.app, keys=keys)
        record = AppRecord(app=request.app, created_at=now)
        self._update_index(lambda apps: apps | {request.app})
        self.store.put_keys(key_set)
        self.store.put_app(record)
        logger.info(f"Added app {request.app} with {len(keys)} key(s)")
        return self._response(record, key_set)

    def get_app(self, app: int, logger: logging.Logger = logger) -> AppResponse:
        """Return an app record and its key metadata."""
        record, key_set = self._load(app)
        return self._response(record, key_set)

    def list_apps(self, logger: logging.Logger = logger) -> list[int]:
        """Registered app ids, ascending. Empty when the index was never written."""
        try:
            index, _ = self.store.get_index()
        except DocumentNotFoundError:
            logger.info("App index not found; was init_db run?")
            return []
        return list(index.apps)

    def remove_app(self, app: int, logger: logging.Logger = logger) -> None:
        """Delete an app and its keys.

        The app record is deleted first. An app that has no record but is
        still listed in the index was partially removed; its keys and index
        entry are cleaned up instead of raising NotFoundError.
        """
        self._require_app_id(app)
        try:
            self.store.delete_app(app)
        except DocumentNotFoundError as e:
            if app not in self.list_apps(logger):
                raise NotFoundError(f"app {app} not found") from e
            logger.warning(f"App {app} is indexed but has no record; finishing removal")
        try:
            self.store.delete_keys(app)
        except DocumentNotFoundError:
            logger.warning(f"App {app} had no key set")
        self._update_index(lambda apps: apps - {app})
        logger.info(f"Removed app {app}")

    # --- Keys ---

    def add_key(self, app: int, key: AppKey, logger: logging.Logger = logger) -> AppResponse:
        """Add a key to an existing app. The new key becomes the most recent one."""
        record, key_set = self._load(app)
        checked = self._check_key(key, self._clock())
        if key_set.find(checked.meta.fingerprint) is not None:
            raise InvalidArgumentError(f"app {app} already has key {checked.meta.fingerprint}")
        key_set = key_set.model_copy(update={"keys": [*key_set.keys, checked]})
        self.store.put_keys(key_set)
        logger.info(f"Added key {checked.meta.fingerprint} to app {app}")
        return self._response(record, key_set)

    def revoke_key(self, app: int, fingerprint: str, logger: logging.Logger = logger) -> AppResponse:
        """Mark a key revoked; it is kept for audit but never signs again."""
        record, key_set = self._load(app)
        key = self._find_key(app, key_set, fingerprint)
        if key.meta.revoked_at is None:
            revoked = key.model_copy(update={"meta": key.meta.model_copy(update={"revoked_at": self._clock()})})
            key_set = key_set.model_copy(update={"keys": [revoked if k is key else k for k in key_set.keys]})
            self.store.put_keys(key_set)
        if record.active_key == fingerprint:
            record = record.model_copy(update={"active_key": None})
            self.store.put_app(record)
        logger.info(f"Revoked key {fingerprint} of app {app}")
        return self._response(record, key_set)

    def remove_key(self, app: int, fingerprint: str, logger: logging.Logger = logger) -> AppResponse:
        """Delete a key from an app's key set."""
        record, key_set = self._load(app)
        key = self._find_key(app, key_set, fingerprint)
        key_set = key_set.model_copy(update={"keys": [k for k in key_set.keys if k is not key]})
        self.store.put_keys(key_set)
        if record.active_key == fingerprint:
            record = record.model_copy(update={"active_key": None})
            self.store.put_app(record)
        logger.info(f"Removed key {fingerprint} from app {app}")
        return self._response(record, key_set)

    def activate_key(self, app: int, fingerprint: str, logger: logging.Logger = logger) -> AppResponse:
        """Pin a usable key as the app's signing key."""
        record, key_set = self._load(app)
        key = self._find_key(app, key_set, fingerprint)
        if not key.meta.is_usable(self._clock()):
            raise InvalidArgumentError(f"key {fingerprint} of app {app} is revoked or expired")
        record = record.model_copy(update={"active_key": fingerprint})
        self.store.put_app(record)
        logger.info(f"Activated key {fingerprint} for app {app}")
        return self._response(record, key_set)

    # --- Signing ---

    def sign_jwt(self, request: SignJwtRequest, logger: logging.Logger = logger) -> SignJwtResponse:
        """Sign request.claims with the app's active key.

        Raises:
            InvalidArgumentError: App id 0 or claims that are not JSON.
            UnimplementedError: Any algorithm other than RS256.
            NotFoundError: Unknown app, or no usable key.
        """
        self._require_app_id(request.app)
        check_algorithm(request.algorithm)
        record, key_set = self._load(request.app)
        key = select_active_key(record, key_set, self._clock())
        if key is None:
            logger.error(f"App {request.app} has no usable signing key")
            raise NotFoundError(f"app {request.app} has no usable signing key")
        token = sign_jwt(parse_private_key(key.key), request.claims, request.algorithm)
        logger.debug(f"Signed JWT for app {request.app} with key {key.meta.fingerprint}")
        return SignJwtResponse(jwt=token)

    # --- Helpers ---

    @staticmethod
    def _require_app_id(app: int) -> None:
        if app == 0:
            raise InvalidArgumentError("app id 0 is not allowed")

    def _load(self, app: int) -> tuple[AppRecord, AppKeySet]:
        self._require_app_id(app)
        try:
            record, _ = self.store.get_app(app)
        except DocumentNotFoundError as e:
            raise NotFoundError(f"app {app} not found") from e
        try:
            key_set, _ = self.store.get_keys(app)
        except DocumentNotFoundError:
            key_set = AppKeySet(app=app)
        return record, key_set

    @staticmethod
    def _find_key(app: int, key_set: AppKeySet, fingerprint: str) -> AppKey:
        key = key_set.find(fingerprint)
        if key is None:
            raise NotFoundError(f"app {app} has no key {fingerprint}")
        return key

    @staticmethod
    def _check_key(key: AppKey, now: datetime) -> AppKey:
        """Verify the claimed fingerprint against the key material; stamp added_at."""
        actual = key_fingerprint(parse_private_key(key.key))
        if actual != key.meta.fingerprint:
            raise InvalidArgumentError(f"fingerprint {key.meta.fingerprint} does not match key (expected {actual})")
        if key.meta.added_at is None:
            return key.model_copy(update={"meta": key.meta.model_copy(update={"added_at": now})})
        return key

    def _update_index(self, change: Callable[[set[int]], set[int]]) -> None:
        try:
            index, _ = self.store.get_index()
        except DocumentNotFoundError:
            index = AppIndex()
        self.store.put_index(AppIndex(apps=sorted(change(set(index.apps)))))

    @staticmethod
    def _response(record: AppRecord, key_set: AppKeySet) -> AppResponse:
        return AppResponse(app=record, keys=[k.meta for k in key_set.keys])
