"""Common test fixtures: RSA keys, in-memory stores and services."""

import pytest
from cryptography.hazmat.primitives.asymmetric import rsa

from app_keystore.document_store import MemoryDocumentStore
from app_keystore.keys import AppKeyService, AppKeyStore
from app_keystore.tokens import TokenDocStore
from tests.support.helpers import FakeClock


@pytest.fixture(scope="session")
def rsa_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def other_rsa_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def doc_store() -> MemoryDocumentStore:
    return MemoryDocumentStore()


@pytest.fixture
def key_service(doc_store: MemoryDocumentStore, clock: FakeClock) -> AppKeyService:
    service = AppKeyService(AppKeyStore(doc_store), clock=clock)
    service.init_db()
    return service


@pytest.fixture
def token_store(doc_store: MemoryDocumentStore) -> TokenDocStore:
    return TokenDocStore(doc_store)
