"""Pytest configuration for all tests."""

import os

# Settings are read at import time; keep hashing cheap and the signer configured.
os.environ.setdefault("bcrypt_rounds", "4")
os.environ.setdefault("jwt_secret_key", "test-secret")
os.environ.setdefault("environment", "test")

from datetime import timedelta

import mongomock
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from mongoengine import connect, disconnect

from app.client.events import EventBus
from app.client.session import SessionCache
from app.client.storage import FileStorage, MemoryStorage
from app.models.user import User
from app.services.token import TokenIssuer, get_token_issuer
from main import app


@pytest.fixture(autouse=True)
def mongo():
    """Back mongoengine with an in-memory mongomock client."""
    connect("auth_test", host="mongodb://localhost", alias="default", mongo_client_class=mongomock.MongoClient)
    User.ensure_indexes()
    yield
    User.drop_collection()
    disconnect(alias="default")


@pytest.fixture
def token_issuer() -> TokenIssuer:
    return TokenIssuer(secret_key="test-secret", ttl=timedelta(days=7))


@pytest.fixture
def asgi_app(token_issuer):
    app.dependency_overrides[get_token_issuer] = lambda: token_issuer
    yield app
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(asgi_app):
    async with AsyncClient(transport=ASGITransport(app=asgi_app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def session_cache(tmp_path, bus) -> SessionCache:
    return SessionCache(persistent=FileStorage(tmp_path / "session.json"), bus=bus, volatile=MemoryStorage())
