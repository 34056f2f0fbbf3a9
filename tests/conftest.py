"""
Shared fixtures.

The environment is set before anything from careerconnect is imported:
settings are read once and cached, and several modules capture them at
import time.
"""

import os

os.environ.update({
    "MONGODB_DB": "careerconnect_test",
    "USE_INDEX_HINTS": "false",
    "USE_CHANGE_STREAMS": "false",
    "SNAPSHOT_POLL_INTERVAL_SECONDS": "0.05",
    "JWT_SECRET_KEY": "test-secret-key",
    "ADMIN_EMAIL": "admin@example.com",
    "ADMIN_PASSWORD": "admin-password",
    "CLOUDINARY_CLOUD_NAME": "",
    "CLOUDINARY_UPLOAD_PRESET": "",
    "LOG_JSON": "false",
    "LOG_LEVEL": "WARNING",
})

import time  # noqa: E402

import mongomock  # noqa: E402
import mongomock.gridfs  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from careerconnect.db.mongodb import get_mongo_db, init_mongo_indexes, use_mongo_client  # noqa: E402

# GridFS accepts mongomock databases from here on
mongomock.gridfs.enable_gridfs_integration()


@pytest.fixture(autouse=True)
def db():
    """Fresh in-memory MongoDB for every test."""
    use_mongo_client(mongomock.MongoClient())
    init_mongo_indexes()
    yield get_mongo_db()


@pytest.fixture
def client(db):
    from careerconnect.main import create_app

    with TestClient(create_app()) as test_client:
        yield test_client


def auth_headers(client: TestClient, email: str, password: str) -> dict:
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def register(client: TestClient, role: str, email: str, password: str = "password123", **extra) -> dict:
    response = client.post(
        "/api/auth/register",
        json={"email": email, "password": password, "role": role, **extra},
    )
    assert response.status_code == 201, response.text
    return auth_headers(client, email, password)


def wait_for(predicate, timeout: float = 3.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return predicate()
