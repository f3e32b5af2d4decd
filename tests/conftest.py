"""
Pytest fixtures for StartupVault tests.

Storage is an in-memory mongomock database with the production indexes, so
uniqueness rules are enforced the same way they are in MongoDB.
"""
import pathlib
import sys
from datetime import timedelta

import mongomock
import pytest
from fastapi.testclient import TestClient

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from access import Viewer  # noqa: E402
from catalog import create_deal  # noqa: E402
from database import ensure_indexes, get_db  # noqa: E402
from main import app  # noqa: E402
from schemas import User as UserSchema, utcnow  # noqa: E402
from security import hash_password  # noqa: E402

PASSWORD = "s3cret-pass"
_PASSWORD_HASH = hash_password(PASSWORD)


@pytest.fixture
def db():
    database = mongomock.MongoClient()["startupvault_test"]
    ensure_indexes(database)
    return database


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_deal(db):
    def _make(**overrides):
        data = {
            "title": "Vercel Pro - 50% Off",
            "description": "Hosting for frontend teams",
            "category": "hosting",
            "access_level": "public",
            "discount": 50,
            "discount_type": "percentage",
            "max_claims": 10,
            "partner": {
                "name": "Vercel",
                "logo": "https://via.placeholder.com/100?text=Vercel",
                "description": "Frontend cloud",
                "website": "https://vercel.com",
            },
            "terms": "Valid for 12 months.",
            "expires_at": utcnow() + timedelta(days=30),
        }
        data.update(overrides)
        return create_deal(db, data)

    return _make


@pytest.fixture
def make_user(db):
    """Insert a user directly (password is PASSWORD) and return their Viewer."""
    def _make(email="founder@startup.io", verified=False, name="Ada Founder"):
        now = utcnow()
        doc = UserSchema(email=email, password_hash=_PASSWORD_HASH, name=name, is_verified=verified).model_dump()
        doc.update({"created_at": now, "updated_at": now})
        res = db["user"].insert_one(doc)
        return Viewer(user_id=str(res.inserted_id), email=email, is_verified=verified)

    return _make


@pytest.fixture
def auth_headers(client):
    def _login(email, password=PASSWORD):
        resp = client.post("/api/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        return {"Authorization": f"Bearer {resp.json()['token']}"}

    return _login
