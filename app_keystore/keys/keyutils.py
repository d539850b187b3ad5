"""RSA key parsing and fingerprinting."""

import base64
import hashlib

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from app_keystore.exceptions import InvalidArgumentError


def parse_private_key(key_bytes: bytes) -> rsa.RSAPrivateKey:
    """Load an unencrypted PEM RSA private key (PKCS#1 or PKCS#8).

    Raises:
        InvalidArgumentError: When the bytes are not an RSA private key.
    """
    try:
        key = serialization.load_pem_private_key(key_bytes, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise InvalidArgumentError(f"failed to parse private key: {e}") from e
    if not isinstance(key, rsa.RSAPrivateKey):
        raise InvalidArgumentError(f"expected an RSA private key, got {type(key).__name__}")
    return key


def key_fingerprint(key: rsa.RSAPrivateKey | rsa.RSAPublicKey) -> str:
    """Base64 SHA256 digest of the DER SubjectPublicKeyInfo of the public half.

    Stable for a given key pair, so it identifies a key within an app.
    """
    public_key = key.public_key() if isinstance(key, rsa.RSAPrivateKey) else key
    der = public_key.public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return base64.b64encode(hashlib.sha256(der).digest()).decode("ascii")
