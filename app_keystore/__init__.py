"""app-keystore - signing keys and cached installation tokens for multi-tenant Apps.

@public

Each App owns RSA signing keys and may have many installations, each needing
its own short-lived access token. app-keystore keeps keys and tokens in a
swappable document store, signs JWT assertions with an App's active key, and
serves installation tokens from cache, refreshing them from the upstream
token-issuing authority when they expire.

Quick Start:
    >>> from app_keystore import (
    ...     AppKeyService, AppKeyStore, InstallTokenService, TokenDocStore,
    ...     MemoryDocumentStore, AddAppRequest, GetInstallTokenRequest, SignJwtRequest,
    ... )
    >>>
    >>> docs = MemoryDocumentStore()
    >>> keys = AppKeyService(AppKeyStore(docs))
    >>> keys.init_db()
    >>> keys.add_app(AddAppRequest(app=1, keys=[...]))
    >>> keys.sign_jwt(SignJwtRequest(app=1, algorithm="RS256", claims={"iss": "1"}))
    >>>
    >>> tokens = InstallTokenService(TokenDocStore(docs), mint_app_token, mint_install_token)
    >>> tokens.get_install_token(GetInstallTokenRequest(app=1, install=7))

Configuration is read from APP_KEYSTORE_* environment variables, see
app_keystore.settings.
"""

from .document_store import (
    CacheMeta,
    DocumentStore,
    GcsLocation,
    MemoryDocumentStore,
    MemoryLocation,
    RetryPolicy,
    StorageLocation,
    create_document_store,
    create_document_store_from_settings,
)
from .exceptions import (
    BackendError,
    DocumentDecodeError,
    DocumentNotFoundError,
    InvalidArgumentError,
    KeystoreError,
    NotFoundError,
    TokenProviderError,
    UnallowedAppIdError,
    UnauthorizedError,
    UnimplementedError,
)
from .keys import AppKeyService, AppKeyStore, key_fingerprint, parse_private_key
from .links import DEFAULT_LINKS, Links
from .logging import LoggingConfig, get_keystore_logger, setup_logging
from .models import (
    AddAppRequest,
    AppIndex,
    AppKey,
    AppKeyMeta,
    AppKeySet,
    AppRecord,
    AppResponse,
    AppToken,
    GetInstallTokenRequest,
    GetInstallTokenResponse,
    InstallToken,
    SignJwtRequest,
    SignJwtResponse,
)
from .settings import Settings, settings
from .tokens import AppTokenProvider, InstallTokenProvider, InstallTokenService, TokenDocStore

__version__ = "0.3.0"

__all__ = [
    # Document store
    "CacheMeta",
    "DocumentStore",
    "GcsLocation",
    "MemoryDocumentStore",
    "MemoryLocation",
    "RetryPolicy",
    "StorageLocation",
    "create_document_store",
    "create_document_store_from_settings",
    # Naming
    "DEFAULT_LINKS",
    "Links",
    # Keys
    "AppKeyService",
    "AppKeyStore",
    "key_fingerprint",
    "parse_private_key",
    # Tokens
    "AppTokenProvider",
    "InstallTokenProvider",
    "InstallTokenService",
    "TokenDocStore",
    # Models
    "AddAppRequest",
    "AppIndex",
    "AppKey",
    "AppKeyMeta",
    "AppKeySet",
    "AppRecord",
    "AppResponse",
    "AppToken",
    "GetInstallTokenRequest",
    "GetInstallTokenResponse",
    "InstallToken",
    "SignJwtRequest",
    "SignJwtResponse",
    # Errors
    "BackendError",
    "DocumentDecodeError",
    "DocumentNotFoundError",
    "InvalidArgumentError",
    "KeystoreError",
    "NotFoundError",
    "TokenProviderError",
    "UnallowedAppIdError",
    "UnauthorizedError",
    "UnimplementedError",
    # Config & logging
    "LoggingConfig",
    "Settings",
    "get_keystore_logger",
    "settings",
    "setup_logging",
]
