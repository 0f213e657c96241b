"""
Shared fixtures: an in-memory store, a signer with a fixed secret and a
handler wired to both (bcrypt at its minimum cost to keep tests fast).
"""

import pytest
from fastapi.testclient import TestClient

from auth.handler import CredentialHandler
from auth.tokens import TokenSigner
from database.memory_store import InMemoryAccountStore

TEST_SECRET = "test-secret"


@pytest.fixture
def store() -> InMemoryAccountStore:
    return InMemoryAccountStore()


@pytest.fixture
def signer() -> TokenSigner:
    return TokenSigner(TEST_SECRET)


@pytest.fixture
def handler(store, signer) -> CredentialHandler:
    return CredentialHandler(store, signer, bcrypt_rounds=4)


@pytest.fixture
def client(handler) -> TestClient:
    from main import create_app

    return TestClient(create_app(handler=handler))
