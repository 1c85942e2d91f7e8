"""WebSocket endpoint tests — in-band auth and write-triggered pushes.

Learn: httpx's ASGITransport doesn't speak WebSocket, so these tests use
Starlette's TestClient. Used as a context manager it runs the app's
lifespan and shares one event loop between HTTP calls and open sockets,
so a POST made while a socket is open pushes to that socket before the
POST returns.
"""

import uuid

import pytest
from starlette.testclient import TestClient
from starlette.websockets import WebSocketDisconnect


@pytest.fixture()
def tc(app):
    with TestClient(app) as c:
        yield c


def _register(tc):
    email = f"ws-{uuid.uuid4().hex[:8]}@example.com"
    r = tc.post(
        "/api/auth/register",
        json={
            "username": "ws",
            "email": email,
            "password": "secret123",
            "confirmPassword": "secret123",
            "role": "farmer",
        },
    )
    assert r.status_code == 201, r.text
    body = r.json()
    return body["user"], body["token"], {"Authorization": f"Bearer {body['token']}"}


def _alert(title="Hail warning"):
    return {"type": "weather", "severity": "high", "title": title, "message": "Cover seedlings"}


def test_auth_success(tc):
    _, token, _ = _register(tc)
    with tc.websocket_connect("/ws") as ws:
        ws.send_json({"type": "auth", "token": token})
        assert ws.receive_json() == {"type": "auth", "status": "success"}


def test_new_alert_is_pushed(tc, app):
    user, token, headers = _register(tc)
    with tc.websocket_connect("/ws") as ws:
        ws.send_json({"type": "auth", "token": token})
        ws.receive_json()
        assert app.state.registry.get(user["id"]) is not None

        r = tc.post("/api/monitoring/alerts", json=_alert(), headers=headers)
        assert r.status_code == 201

        message = ws.receive_json()
        assert message["type"] == "new_alert"
        assert message["alert"]["id"] == r.json()["id"]
        assert message["alert"]["title"] == "Hail warning"


def test_monitoring_data_is_pushed_to_field_owner(tc):
    _, token, headers = _register(tc)
    crop = tc.get("/api/crops").json()[0]
    field = tc.post(
        "/api/monitoring/fields",
        json={"name": "Plot A", "cropId": crop["id"], "area": 2},
        headers=headers,
    ).json()

    with tc.websocket_connect("/ws") as ws:
        ws.send_json({"type": "auth", "token": token})
        ws.receive_json()

        r = tc.post(
            "/api/monitoring/data",
            json={"fieldId": field["id"], "sensorType": "soil_temperature", "value": 18.2, "unit": "C"},
            headers=headers,
        )
        assert r.status_code == 201

        message = ws.receive_json()
        assert message["type"] == "monitoring_data"
        assert message["data"]["id"] == r.json()["id"]
        assert message["data"]["value"] == 18.2


def test_pushes_only_reach_their_owner(tc):
    _, alice_token, alice = _register(tc)
    _, _, bob = _register(tc)

    with tc.websocket_connect("/ws") as ws:
        ws.send_json({"type": "auth", "token": alice_token})
        ws.receive_json()

        tc.post("/api/monitoring/alerts", json=_alert("for bob"), headers=bob)
        mine = tc.post("/api/monitoring/alerts", json=_alert("for alice"), headers=alice).json()

        # Bob's alert never reached this socket, so Alice's is next in line
        message = ws.receive_json()
        assert message["alert"]["id"] == mine["id"]


def test_invalid_token_reports_error_and_closes(tc, app):
    with tc.websocket_connect("/ws") as ws:
        ws.send_json({"type": "auth", "token": "garbage"})
        assert ws.receive_json() == {"type": "auth", "status": "error", "message": "Invalid token"}
        with pytest.raises(WebSocketDisconnect) as exc:
            ws.receive_json()
        assert exc.value.code == 1008

    assert len(app.state.registry) == 0


def test_bad_reauth_drops_existing_binding(tc, app):
    user, token, _ = _register(tc)
    with tc.websocket_connect("/ws") as ws:
        ws.send_json({"type": "auth", "token": token})
        ws.receive_json()
        assert len(app.state.registry) == 1

        ws.send_json({"type": "auth", "token": "garbage"})
        assert ws.receive_json()["status"] == "error"
        assert app.state.registry.get(user["id"]) is None
        with pytest.raises(WebSocketDisconnect):
            ws.receive_json()


def test_malformed_and_unknown_messages_are_ignored(tc):
    _, token, _ = _register(tc)
    with tc.websocket_connect("/ws") as ws:
        ws.send_text("this is not json")
        ws.send_json({"type": "hello"})
        ws.send_json(["auth", token])
        ws.send_json({"type": "auth"})
        ws.send_json({"type": "auth", "token": token})
        # Nothing was answered before the valid auth message
        assert ws.receive_json() == {"type": "auth", "status": "success"}


def test_disconnect_unregisters(tc, app):
    user, token, _ = _register(tc)
    with tc.websocket_connect("/ws") as ws:
        ws.send_json({"type": "auth", "token": token})
        ws.receive_json()

    assert app.state.registry.get(user["id"]) is None
    assert len(app.state.registry) == 0
