"""App keys: storage, lifecycle and JWT signing."""

from .jwt import SUPPORTED_ALGORITHMS, sign_jwt
from .keyutils import key_fingerprint, parse_private_key
from .service import AppKeyService, select_active_key
from .store import AppKeyStore

__all__ = [
    "SUPPORTED_ALGORITHMS",
    "AppKeyService",
    "AppKeyStore",
    "key_fingerprint",
    "parse_private_key",
    "select_active_key",
    "sign_jwt",
]
