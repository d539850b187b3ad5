"""Installation token service: serve cached install tokens, refresh on expiry.

Refresh protocol for get_install_token:

1. App id 0 is rejected before any storage access.
2. A cached install token that expires strictly after now is returned as is.
3. Otherwise the cached app token is read; when missing, unreadable or
   expired, a fresh one is minted by the app token provider and cached.
4. A fresh install token is minted by the install token provider and cached.
5. The fresh install token is returned.

Cache reads that fail count as misses. Cache writes are best effort: a failed
put is logged and the freshly minted token is still returned. Concurrent
requests for the same installation may each refresh; the last write wins.
"""

import logging
from datetime import UTC, datetime
from typing import Callable, TypeVar

from pydantic import ValidationError

from app_keystore.exceptions import BackendError, KeystoreError, NotFoundError, TokenProviderError, UnallowedAppIdError
from app_keystore.logging import get_keystore_logger
from app_keystore.models import AppToken, GetInstallTokenRequest, GetInstallTokenResponse, InstallToken
from app_keystore.tokens.store import TokenDocStore

logger = get_keystore_logger(__name__)

AppTokenProvider = Callable[[int], tuple[bytes | str, datetime]]
"""Mints an app token: app id -> (token, expiration)."""

InstallTokenProvider = Callable[[int, int], tuple[bytes | str, datetime]]
"""Mints an install token: (app id, install id) -> (token, expiration)."""

_TokenT = TypeVar("_TokenT", bound=AppToken | InstallToken)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class InstallTokenService:
    """Cache-then-refresh access to installation tokens.

    Holds its TokenDocStore and both providers by composition. No lock guards
    refreshes; stricter exactly-once refresh needs a lease document on top.
    """

    def __init__(
        self,
        store: TokenDocStore,
        app_token_provider: AppTokenProvider,
        install_token_provider: InstallTokenProvider,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self.app_token_provider = app_token_provider
        self.install_token_provider = install_token_provider
        self._clock = clock

    def init_db(self, logger: logging.Logger = logger) -> None:
        self.store.init_db(logger)

    def get_install_token(self, request: GetInstallTokenRequest, logger: logging.Logger = logger) -> GetInstallTokenResponse:
        """Return a valid install token, refreshing it when needed.

        Raises:
            UnallowedAppIdError: App id 0.
            TokenProviderError: A provider failed or returned garbage.
        """
        if request.app == 0:
            logger.error(f"Attempted to get install token for app {request.app}")
            raise UnallowedAppIdError(request.app)

        cached = self._cached_install_token(request.app, request.install, logger)
        if cached is not None:
            return GetInstallTokenResponse(token=cached)

        self._ensure_app_token(request.app, logger)

        token = self._mint(
            f"app {request.app} install {request.install}",
            lambda: self.install_token_provider(request.app, request.install),
            lambda value, expiration: InstallToken(app=request.app, install=request.install, token=value, expiration=expiration),
            logger,
        )
        try:
            self.store.put_install_token_doc(token)
        except BackendError as e:
            logger.error(f"Failed to put token for app {request.app} install {request.install}: {e}")
        return GetInstallTokenResponse(token=token)

    def _cached_install_token(self, app: int, install: int, logger: logging.Logger) -> InstallToken | None:
        try:
            token, _ = self.store.get_install_token_doc(app, install)
        except NotFoundError:
            logger.debug(f"No cached token for app {app} install {install}")
            return None
        except BackendError as e:
            logger.error(f"Error fetching token for app {app} install {install}: {e}")
            return None
        if token.is_valid_at(self._clock()):
            return token
        logger.info(f"Fetched token for app {app} and install {install} is expired")
        return None

    def _ensure_app_token(self, app: int, logger: logging.Logger) -> AppToken:
        """Return a valid app token, minting and caching one when the cache has none."""
        try:
            cached, _ = self.store.get_app_token_doc(app)
            if cached.is_valid_at(self._clock()):
                return cached
            logger.info(f"Cached app token for app {app} is expired")
        except NotFoundError:
            logger.debug(f"No cached app token for app {app}")
        except BackendError as e:
            logger.error(f"Failed to get app {app} token doc: {e}")

        token = self._mint(
            f"app {app}",
            lambda: self.app_token_provider(app),
            lambda value, expiration: AppToken(app=app, token=value, expiration=expiration),
            logger,
        )
        try:
            self.store.put_app_token_doc(token)
        except BackendError as e:
            logger.error(f"Failed to put app token for app {app}: {e}")
        return token

    def _mint(
        self,
        subject: str,
        provide: Callable[[], tuple[bytes | str, datetime]],
        build: Callable[[bytes | str, datetime], _TokenT],
        logger: logging.Logger,
    ) -> _TokenT:
        try:
            value, expiration = provide()
            token = build(value, expiration)
        except KeystoreError:
            logger.error(f"Failed to get new token for {subject}")
            raise
        except ValidationError as e:
            logger.error(f"Provider returned an invalid token for {subject}: {e}")
            raise TokenProviderError(f"invalid token for {subject}: {e}") from e
        except Exception as e:
            logger.error(f"Failed to get new token for {subject}: {e}")
            raise TokenProviderError(f"failed to mint token for {subject}: {e}") from e
        if not token.is_valid_at(self._clock()):
            logger.warning(f"Provider minted an already expired token for {subject}")
        return token
