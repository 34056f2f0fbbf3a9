import asyncio
import json

from careerconnect.api import streams
from careerconnect.api.routes import admin_routes
from careerconnect.db.documents import utcnow
from careerconnect.services.admin_service import DEFAULT_SETTINGS
from tests.conftest import auth_headers, register


class ConnectedRequest:
    async def is_disconnected(self):
        return False


class DisconnectedRequest:
    async def is_disconnected(self):
        return True


def parse_event(chunk: str):
    name, data = chunk.strip().split("\n")
    return name.split(": ", 1)[1], json.loads(data.split(": ", 1)[1])


async def first_events(body, count=1, timeout=3.0):
    try:
        return [await asyncio.wait_for(body.__anext__(), timeout) for _ in range(count)]
    finally:
        await body.aclose()


def test_activity_stream_opens_with_current_snapshot(db):
    db["activities"].insert_one({
        "_id": "a1", "type": "company_approved", "action": "Company approved", "created_at": utcnow(),
    })

    async def run():
        response = await admin_routes.stream("activities", ConnectedRequest())
        assert response.media_type == "text/event-stream"
        return await first_events(response.body_iterator)

    [chunk] = asyncio.run(run())

    name, payload = parse_event(chunk)
    assert name == "snapshot"
    assert [a["id"] for a in payload] == ["a1"]
    assert payload[0]["type"] == "company_approved"


def test_settings_stream_falls_back_to_defaults(db):
    async def run():
        response = await admin_routes.stream("settings", ConnectedRequest())
        return await first_events(response.body_iterator)

    [chunk] = asyncio.run(run())

    name, payload = parse_event(chunk)
    assert name == "snapshot"
    assert payload["site_name"] == DEFAULT_SETTINGS["site_name"]


def test_idle_stream_sends_heartbeats_and_unsubscribes_on_close(monkeypatch):
    monkeypatch.setattr(streams, "HEARTBEAT_SECONDS", 0.01)
    closed = []

    def start(on_snapshot):
        return lambda: closed.append(True)

    async def run():
        response = streams.snapshot_stream(ConnectedRequest(), "users", start)
        return await first_events(response.body_iterator)

    assert asyncio.run(run()) == ["event: heartbeat\ndata: {}\n\n"]
    assert closed == [True]


def test_disconnected_client_ends_stream():
    closed = []

    def start(on_snapshot):
        on_snapshot([{"id": "u1"}])
        return lambda: closed.append(True)

    async def run():
        response = streams.snapshot_stream(DisconnectedRequest(), "users", start)
        return [chunk async for chunk in response.body_iterator]

    assert asyncio.run(run()) == []
    assert closed == [True]


def test_stream_channels_are_admin_only(client):
    admin = auth_headers(client, "admin@example.com", "admin-password")
    student = register(client, "student", "watcher@example.com")

    response = client.get("/api/admin/stream/payroll", headers=admin)
    assert response.status_code == 404
    assert response.json()["detail"] == "Unknown stream channel 'payroll'"

    assert client.get("/api/admin/stream/activities", headers=student).status_code == 403
