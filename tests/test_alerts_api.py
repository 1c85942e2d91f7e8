"""Alert + alert subscription tests."""

import pytest

from tests.conftest import BOTH_BACKENDS


def _alert_body(**overrides):
    body = {
        "type": "pest",
        "severity": "high",
        "title": "Lagarta-do-cartucho detected",
        "message": "Trap counts above threshold in north plot",
        "actionRequired": "Inspect and apply biological control",
        "triggerValue": 14,
        "thresholdValue": 10,
    }
    body.update(overrides)
    return body


async def _create_alert(client, headers, **overrides):
    r = await client.post("/api/monitoring/alerts", json=_alert_body(**overrides), headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


# ═══════════════════════════════════════════════════════════
# Alerts
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_create_alert(client, make_user):
    user, headers = await make_user()
    alert = await _create_alert(client, headers)
    assert alert["userId"] == user["id"]
    assert alert["isRead"] is False
    assert alert["isResolved"] is False
    assert alert["resolvedAt"] is None


@pytest.mark.asyncio
async def test_create_alert_invalid_severity(client, auth_headers):
    r = await client.post(
        "/api/monitoring/alerts", json=_alert_body(severity="apocalyptic"), headers=auth_headers
    )
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_list_alerts_newest_first_and_unread_filter(client, auth_headers):
    first = await _create_alert(client, auth_headers, title="first")
    second = await _create_alert(client, auth_headers, title="second")

    r = await client.get("/api/monitoring/alerts", headers=auth_headers)
    assert [a["id"] for a in r.json()] == [second["id"], first["id"]]

    await client.put(f"/api/monitoring/alerts/{second['id']}/read", headers=auth_headers)

    r = await client.get("/api/monitoring/alerts", params={"unread": "true"}, headers=auth_headers)
    assert [a["id"] for a in r.json()] == [first["id"]]


@pytest.mark.asyncio
async def test_mark_read_is_idempotent(client, auth_headers):
    alert = await _create_alert(client, auth_headers)

    for _ in range(2):
        r = await client.put(f"/api/monitoring/alerts/{alert['id']}/read", headers=auth_headers)
        assert r.status_code == 200
        assert r.json()["message"] == "Alert marked as read"
        assert r.json()["alert"]["isRead"] is True


@pytest.mark.asyncio
async def test_resolve_stamps_resolved_at_once(client, auth_headers):
    alert = await _create_alert(client, auth_headers)

    r1 = await client.put(f"/api/monitoring/alerts/{alert['id']}/resolve", headers=auth_headers)
    r2 = await client.put(f"/api/monitoring/alerts/{alert['id']}/resolve", headers=auth_headers)
    assert r1.status_code == r2.status_code == 200
    resolved = r1.json()["alert"]
    assert resolved["isResolved"] is True
    assert resolved["resolvedAt"] is not None
    assert r2.json()["alert"]["resolvedAt"] == resolved["resolvedAt"]


@pytest.mark.asyncio
async def test_mark_unknown_alert(client, auth_headers):
    r = await client.put("/api/monitoring/alerts/missing/read", headers=auth_headers)
    assert r.status_code == 404
    assert r.json() == {"message": "Alert not found"}


@pytest.mark.asyncio
async def test_other_users_alert_is_not_found(client, make_user):
    _, owner = await make_user()
    _, stranger = await make_user()
    alert = await _create_alert(client, owner)

    r = await client.put(f"/api/monitoring/alerts/{alert['id']}/resolve", headers=stranger)
    assert r.status_code == 404
    assert (await client.get("/api/monitoring/alerts", headers=stranger)).json() == []


# ═══════════════════════════════════════════════════════════
# Subscriptions
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_subscription_crud(client, auth_headers):
    r = await client.post(
        "/api/monitoring/subscriptions",
        json={"alertType": "weather", "thresholdSettings": {"minTemp": 2}},
        headers=auth_headers,
    )
    assert r.status_code == 201
    sub = r.json()
    assert sub["isEnabled"] is True
    assert sub["notificationMethod"] == "app"
    assert sub["thresholdSettings"] == {"minTemp": 2}

    r = await client.put(
        f"/api/monitoring/subscriptions/{sub['id']}",
        json={"isEnabled": False},
        headers=auth_headers,
    )
    assert r.status_code == 200
    assert r.json()["isEnabled"] is False
    assert r.json()["alertType"] == "weather"

    listed = (await client.get("/api/monitoring/subscriptions", headers=auth_headers)).json()
    assert [s["id"] for s in listed] == [sub["id"]]

    r = await client.delete(f"/api/monitoring/subscriptions/{sub['id']}", headers=auth_headers)
    assert r.status_code == 204
    assert (await client.get("/api/monitoring/subscriptions", headers=auth_headers)).json() == []


@pytest.mark.asyncio
async def test_subscription_invalid_method(client, auth_headers):
    r = await client.post(
        "/api/monitoring/subscriptions",
        json={"alertType": "weather", "notificationMethod": "pigeon"},
        headers=auth_headers,
    )
    assert r.status_code == 400


@BOTH_BACKENDS
@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{"alertType": None}, {"isEnabled": None}, {"notificationMethod": None}])
async def test_subscription_update_rejects_null(client, auth_headers, body):
    sub = (
        await client.post("/api/monitoring/subscriptions", json={"alertType": "pest"}, headers=auth_headers)
    ).json()

    r = await client.put(f"/api/monitoring/subscriptions/{sub['id']}", json=body, headers=auth_headers)
    assert r.status_code == 400

    [stored] = (await client.get("/api/monitoring/subscriptions", headers=auth_headers)).json()
    assert stored["alertType"] == "pest"
    assert stored["isEnabled"] is True
    assert stored["notificationMethod"] == "app"


@pytest.mark.asyncio
async def test_other_users_subscription_is_not_found(client, make_user):
    _, owner = await make_user()
    _, stranger = await make_user()
    sub = (
        await client.post("/api/monitoring/subscriptions", json={"alertType": "soil"}, headers=owner)
    ).json()

    r = await client.delete(f"/api/monitoring/subscriptions/{sub['id']}", headers=stranger)
    assert r.status_code == 404
