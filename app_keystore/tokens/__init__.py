"""Installation tokens: cached token documents and the refresh protocol."""

from .service import AppTokenProvider, InstallTokenProvider, InstallTokenService
from .store import TokenDocStore

__all__ = [
    "AppTokenProvider",
    "InstallTokenProvider",
    "InstallTokenService",
    "TokenDocStore",
]
