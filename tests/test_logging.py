import asyncio

import structlog
from fastapi.security import HTTPAuthorizationCredentials
from structlog.testing import capture_logs

from careerconnect.core.auth import create_access_token, get_current_user
from careerconnect.core.logging import REDACTED, redact_secrets


def test_secrets_are_redacted():
    event = redact_secrets(None, "info", {
        "event": "login_failed", "email": "a@example.com", "password": "hunter22", "access_token": "abc",
    })

    assert event == {
        "event": "login_failed", "email": "a@example.com", "password": REDACTED, "access_token": REDACTED,
    }


def test_authenticated_user_is_bound_to_log_context(db):
    db["users"].insert_one({"_id": "u1", "email": "u1@example.com", "role": "company", "status": "active"})
    token = create_access_token({"sub": "u1", "role": "company"})

    async def run():
        structlog.contextvars.clear_contextvars()
        await get_current_user(HTTPAuthorizationCredentials(scheme="Bearer", credentials=token))
        return structlog.contextvars.get_contextvars()

    context = asyncio.run(run())

    assert context["user_id"] == "u1"
    assert context["role"] == "company"


def test_requests_are_logged_with_status_and_id(client):
    with capture_logs() as logs:
        response = client.get("/health", headers={"x-request-id": "req-42"})

    assert response.headers["x-request-id"] == "req-42"
    completed = [entry for entry in logs if entry["event"] == "request_completed"]
    assert completed[0]["status_code"] == 200
    assert completed[0]["duration_ms"] >= 0
