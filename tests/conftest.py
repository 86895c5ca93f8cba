import pytest
from fastapi.testclient import TestClient

from backend.context import ServerContext
from backend.crypto import generate_rsa_keypair, generate_server_key, load_public_key
from persistence.key_store import InMemoryKeyStore
from server.app import create_app
from server.config import Settings


# 2048-bit keys keep the suite fast; production defaults stay at 4096.

@pytest.fixture(scope="session")
def keypair_a():
    return generate_rsa_keypair(2048)


@pytest.fixture(scope="session")
def keypair_b():
    return generate_rsa_keypair(2048)


@pytest.fixture
def pubkey_a(keypair_a):
    return load_public_key(keypair_a[1])


@pytest.fixture
def server_key():
    return generate_server_key()


@pytest.fixture
def store():
    return InMemoryKeyStore()


@pytest.fixture
def ctx(server_key, store):
    return ServerContext(server_key=server_key, store=store)


@pytest.fixture
def client(ctx):
    app = create_app(Settings(database_path=":memory:"), ctx=ctx)
    with TestClient(app) as c:
        yield c
