"""Document and request/response models.

Documents (AppIndex, AppRecord, AppKeySet, AppToken, InstallToken) are what
the document store persists; requests and responses are what the adapter
layer hands to, and receives from, the services.
"""

from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator


def _as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC; aware ones are converted."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]

AppId = Annotated[int, Field(ge=0)]
InstallId = Annotated[int, Field(ge=0)]


def _decode_token(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8")
    return value


# --- Documents ---


class AppIndex(BaseModel):
    """Root marker document listing registered app ids."""

    model_config = ConfigDict(frozen=True)

    apps: list[int] = Field(default_factory=list)


class AppRecord(BaseModel):
    """A tenant. active_key pins an explicitly activated key fingerprint."""

    model_config = ConfigDict(frozen=True)

    app: int = Field(gt=0)
    created_at: UtcDatetime
    active_key: str | None = None


class AppKeyMeta(BaseModel):
    """Key metadata. The fingerprint identifies the key within its app."""

    model_config = ConfigDict(frozen=True)

    fingerprint: str = Field(min_length=1)
    added_at: UtcDatetime | None = None
    revoked_at: UtcDatetime | None = None
    expires_at: UtcDatetime | None = None

    def is_usable(self, now: datetime) -> bool:
        """Not revoked and not past its expiry at now."""
        if self.revoked_at is not None:
            return False
        return self.expires_at is None or now < self.expires_at


class AppKey(BaseModel):
    """PEM encoded RSA private key plus its metadata."""

    model_config = ConfigDict(frozen=True)

    key: bytes
    meta: AppKeyMeta


class AppKeySet(BaseModel):
    """All keys of one app, in the order they were added."""

    model_config = ConfigDict(frozen=True)

    app: int = Field(gt=0)
    keys: list[AppKey] = Field(default_factory=list)

    def find(self, fingerprint: str) -> AppKey | None:
        return next((k for k in self.keys if k.meta.fingerprint == fingerprint), None)


class AppToken(BaseModel):
    """App-level token minted by the token-issuing authority."""

    model_config = ConfigDict(frozen=True)

    app: int = Field(gt=0)
    token: str
    expiration: UtcDatetime

    @field_validator("token", mode="before")
    @classmethod
    def decode_token(cls, value: Any) -> Any:
        return _decode_token(value)

    def is_valid_at(self, now: datetime) -> bool:
        return now < self.expiration


class InstallToken(BaseModel):
    """Installation-scoped token minted by the token-issuing authority."""

    model_config = ConfigDict(frozen=True)

    app: int = Field(gt=0)
    install: int = Field(ge=0)
    token: str
    expiration: UtcDatetime

    @field_validator("token", mode="before")
    @classmethod
    def decode_token(cls, value: Any) -> Any:
        return _decode_token(value)

    def is_valid_at(self, now: datetime) -> bool:
        return now < self.expiration


# --- Requests and responses ---


class AddAppRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    app: AppId
    keys: list[AppKey] = Field(default_factory=list)


class AppResponse(BaseModel):
    """An app record with the metadata of its keys; key material is never returned."""

    model_config = ConfigDict(frozen=True)

    app: AppRecord
    keys: list[AppKeyMeta] = Field(default_factory=list)


class SignJwtRequest(BaseModel):
    """Claims are signed as given; the caller sets iss, iat and exp."""

    model_config = ConfigDict(frozen=True)

    app: AppId
    algorithm: str = "RS256"
    claims: dict[str, Any] = Field(default_factory=dict)


class SignJwtResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    jwt: str


class GetInstallTokenRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    app: AppId
    install: InstallId


class GetInstallTokenResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: InstallToken
