from __future__ import annotations

import os
import sys
from pathlib import Path

# Ensure `backend/` is on sys.path so `import app.*` works in tests.
BACKEND_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_DIR))

# Settings are read at import time, so configure the environment first.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTH_TOKEN_SECRET"] = "unit-test-secret"
os.environ["LOG_LEVEL"] = "WARNING"
for var in ("ADMIN_EMAIL", "ADMIN_PASSWORD", "OWNER_EMAIL", "DEBUGPY"):
    os.environ.pop(var, None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.core.database import Base, SessionLocal, engine  # noqa: E402
from app.core.module_loader import import_all_models  # noqa: E402
from app.core.rate_limit import limiter  # noqa: E402
from app.core.security import create_access_token  # noqa: E402
from app.main import create_app  # noqa: E402


import_all_models()

PASSWORD = "Sup3rSecret"


@pytest.fixture(scope="session")
def app():
    return create_app()


@pytest.fixture(autouse=True)
def _fresh_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def register(client):
    """Register a user through the API and return its JSON representation."""

    def _register(username: str, *, email: str | None = None, password: str = PASSWORD, **extra):
        payload = {
            "email": email or f"{username}@example.com",
            "username": username,
            "password": password,
            **extra,
        }
        r = client.post("/users/register", json=payload)
        assert r.status_code == 201, r.text
        return r.json()

    return _register


@pytest.fixture
def make_user(register, db):
    """Register a user, optionally promote it, and return (user_json, auth_headers)."""
    from app.modules.users.models import User

    def _make(username: str, *, role: str = "user", tier: str = "free", **extra):
        data = register(username, **extra)
        if role != "user" or tier != "free":
            user = db.get(User, data["id"])
            user.role = role
            user.tier = tier
            db.commit()
            data["role"], data["tier"] = role, tier
        token = create_access_token(subject=data["id"])
        return data, {"Authorization": f"Bearer {token}"}

    return _make
