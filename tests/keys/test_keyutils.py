"""Tests for RSA key parsing and fingerprints."""

import base64

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from app_keystore.exceptions import InvalidArgumentError
from app_keystore.keys import key_fingerprint, parse_private_key
from tests.support.helpers import make_pem


class TestParsePrivateKey:
    def test_parses_pkcs1_pem(self, rsa_key: rsa.RSAPrivateKey):
        parsed = parse_private_key(make_pem(rsa_key))
        assert parsed.private_numbers() == rsa_key.private_numbers()

    def test_parses_pkcs8_pem(self, rsa_key: rsa.RSAPrivateKey):
        pem = rsa_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
        assert key_fingerprint(parse_private_key(pem)) == key_fingerprint(rsa_key)

    def test_rejects_garbage(self):
        with pytest.raises(InvalidArgumentError, match="failed to parse"):
            parse_private_key(b"not a key")

    def test_rejects_non_rsa_key(self):
        ec_pem = ec.generate_private_key(ec.SECP256R1()).private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
        with pytest.raises(InvalidArgumentError, match="RSA"):
            parse_private_key(ec_pem)


class TestKeyFingerprint:
    def test_private_and_public_halves_agree(self, rsa_key: rsa.RSAPrivateKey):
        assert key_fingerprint(rsa_key) == key_fingerprint(rsa_key.public_key())

    def test_is_base64_sha256(self, rsa_key: rsa.RSAPrivateKey):
        assert len(base64.b64decode(key_fingerprint(rsa_key))) == 32

    def test_differs_between_keys(self, rsa_key: rsa.RSAPrivateKey, other_rsa_key: rsa.RSAPrivateKey):
        assert key_fingerprint(rsa_key) != key_fingerprint(other_rsa_key)
