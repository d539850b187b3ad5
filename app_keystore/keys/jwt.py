"""Compact JWS assembly for app assertions.

A token is ``b64url(header) . b64url(claims) . b64url(signature)`` where the
signature covers the ASCII bytes of the first two segments. Claims are signed
as given: they are serialized here and signed at PyJWT's JWS layer, so no
registered-claim checks are applied to them.
"""

import json
from typing import Any

import jwt
from cryptography.hazmat.primitives.asymmetric import rsa

from app_keystore.exceptions import InvalidArgumentError, UnimplementedError

# RSASSA-PKCS1-v1_5 with SHA-256 is the only algorithm apps sign with.
SUPPORTED_ALGORITHMS = frozenset({"RS256"})


def check_algorithm(algorithm: str) -> None:
    """Raise UnimplementedError unless algorithm is supported."""
    if algorithm not in SUPPORTED_ALGORITHMS:
        raise UnimplementedError(f"signing algorithm {algorithm!r} is not supported; supported: {', '.join(sorted(SUPPORTED_ALGORITHMS))}")


def sign_jwt(private_key: rsa.RSAPrivateKey, claims: dict[str, Any], algorithm: str = "RS256") -> str:
    """Build and sign a compact JWT over claims.

    Raises:
        UnimplementedError: algorithm is not RS256.
        InvalidArgumentError: claims cannot be encoded as a JWT payload.
    """
    check_algorithm(algorithm)
    try:
        payload = json.dumps(claims, separators=(",", ":"), allow_nan=False).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise InvalidArgumentError(f"claims cannot be encoded: {e}") from e
    return jwt.PyJWS().encode(payload, private_key, algorithm=algorithm, headers={"typ": "JWT"})
