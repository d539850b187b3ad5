"""Exception hierarchy for app-keystore.

Every public operation either returns a well-formed response or raises exactly
one of the exceptions below. All of them inherit from KeystoreError, so callers
translating errors into a wire format (HTTP status, gRPC code) can branch on
the five top-level kinds.
"""


class KeystoreError(Exception):
    """Base exception for all app-keystore errors."""


class InvalidArgumentError(KeystoreError):
    """Raised for malformed or forbidden input (app id 0, duplicate app, fingerprint mismatch)."""


class NotFoundError(KeystoreError):
    """Raised when an app, key or document does not exist."""


class DocumentNotFoundError(NotFoundError):
    """Raised by a document store when no document is stored under the requested name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"document {name!r} not found")
        self.name = name


class UnauthorizedError(KeystoreError):
    """Raised when the caller is not allowed to obtain a credential."""


class UnallowedAppIdError(UnauthorizedError):
    """Raised when a token is requested for an app id that may never hold tokens."""

    def __init__(self, app: int) -> None:
        super().__init__(f"app id {app} is not allowed")
        self.app = app


class BackendError(KeystoreError):
    """Raised when the storage backend or an upstream authority fails."""


class DocumentDecodeError(BackendError):
    """Raised when stored bytes cannot be decoded into the requested document type."""


class TokenProviderError(BackendError):
    """Raised when an external token provider fails to mint a token."""


class UnimplementedError(KeystoreError):
    """Raised for unsupported signing algorithms or backend features."""
