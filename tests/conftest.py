import asyncio
import inspect
import os
import sys
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Settings are read on first import, so the environment goes first
os.environ.setdefault("MONGO_URL", "mongodb://localhost:27017")
os.environ.setdefault("DB_NAME", "aircraft_oil_test")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-testing-only-do-not-use-in-production")

import jwt  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from mongomock_motor import AsyncMongoMockClient  # noqa: E402

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config import get_settings  # noqa: E402
from database.mongodb import get_database  # noqa: E402
from server import app  # noqa: E402


def pytest_pyfunc_call(pyfuncitem):
    if inspect.iscoroutinefunction(pyfuncitem.obj):
        call_kwargs = {
            name: pyfuncitem.funcargs[name]
            for name in pyfuncitem._fixtureinfo.argnames
            if name in pyfuncitem.funcargs
        }
        asyncio.run(pyfuncitem.obj(**call_kwargs))
        return True
    return None


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def db():
    """Fresh in-memory database per test"""
    return AsyncMongoMockClient()[f"test_{uuid.uuid4().hex}"]


@pytest.fixture
def make_token(settings):
    """Sign a token with the test secret. exp_delta may be negative for expired tokens."""
    def _make(sub="user-1", username="pilot", email="pilot@example.com",
              exp_delta=timedelta(hours=1), secret=None, **extra_claims):
        claims = {"username": username, "email": email, **extra_claims}
        if sub is not None:
            claims["sub"] = sub
        claims.setdefault("exp", int((datetime.now(timezone.utc) + exp_delta).timestamp()))
        return jwt.encode(claims, secret or settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
    return _make


@pytest.fixture
def client(db):
    app.dependency_overrides[get_database] = lambda: db
    test_client = TestClient(app)
    yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(make_token):
    return {"Authorization": f"Bearer {make_token()}"}


@pytest.fixture
def duo_headers(make_token):
    """Token of a user who completed the second factor"""
    token = make_token(requiredDuo=True, duoVerified=True)
    return {"Authorization": f"Bearer {token}"}
