"""
Pytest configuration for the feedback system tests.
Points the app at a throwaway SQLite file and turns off rate limiting.
"""

import os
import tempfile

# Must be set before any feedback_system import reads the environment
_test_data_dir = tempfile.mkdtemp(prefix="feedback_test_")
_test_db_path = os.path.join(_test_data_dir, "test.db")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_test_db_path}"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ADMIN_USERNAME"] = "admin"
os.environ["ADMIN_PASSWORD"] = "admin123"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["SMTP_HOST"] = ""
os.environ["ADMIN_EMAIL"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine

from feedback_system.main import app
from feedback_system.models import Base

_sync_engine = create_engine(f"sqlite:///{_test_db_path}")

ADMIN_CREDENTIALS = {"username": "admin", "password": "admin123"}

SAMPLE_FEEDBACK = {
    "name": "Jane Doe",
    "email": "jane@example.com",
    "category": "Technical",
    "rating": 4,
    "message": "The dashboard is great but loads slowly.",
}


@pytest.fixture
def client():
    """Fresh schema per test; the app lifespan seeds the default admin."""
    Base.metadata.drop_all(_sync_engine)
    Base.metadata.create_all(_sync_engine)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_token(client):
    response = client.post("/api/auth/login", json=ADMIN_CREDENTIALS)
    assert response.status_code == 200, response.text
    return response.json()["token"]


@pytest.fixture
def auth_headers(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
def submit_feedback(client):
    """Submit a feedback item, overriding any of the sample fields."""
    def _submit(**overrides):
        payload = {**SAMPLE_FEEDBACK, **overrides}
        response = client.post("/api/feedback/submit", json=payload)
        assert response.status_code == 201, response.text
        return response.json()["data"]
    return _submit


@pytest.fixture
def audit_logs(client, auth_headers):
    def _fetch(**params):
        response = client.get("/api/feedback/audit-logs", headers=auth_headers, params=params)
        assert response.status_code == 200, response.text
        return response.json()["data"]
    return _fetch
