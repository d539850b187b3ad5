"""Test helpers: a settable clock, PEM encoding and key construction."""

from datetime import UTC, datetime, timedelta

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from app_keystore.keys import key_fingerprint
from app_keystore.models import AppKey, AppKeyMeta

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=UTC)


class FakeClock:
    """Settable clock injected into services."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


def make_pem(key: rsa.RSAPrivateKey) -> bytes:
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    )


def make_app_key(key: rsa.RSAPrivateKey, fingerprint: str | None = None, **meta: datetime) -> AppKey:
    return AppKey(key=make_pem(key), meta=AppKeyMeta(fingerprint=fingerprint or key_fingerprint(key), **meta))
