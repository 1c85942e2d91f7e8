"""Recommendation CRUD + generation tests."""

import pytest

from tests.conftest import BOTH_BACKENDS


async def _catalog_ids(client):
    crop = (await client.get("/api/crops")).json()[0]
    protocol = (await client.get("/api/protocols")).json()[0]
    return crop["id"], protocol["id"]


async def _create(client, headers, **overrides):
    crop_id, protocol_id = await _catalog_ids(client)
    body = {
        "cropId": crop_id,
        "protocolId": protocol_id,
        "title": "Soil liming",
        "description": "Apply dolomitic limestone before planting",
        "category": "soil_management",
    }
    body.update(overrides)
    r = await client.post("/api/recommendations", json=body, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


@pytest.mark.asyncio
async def test_requires_auth(client):
    r = await client.get("/api/recommendations")
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_create_and_list(client, auth_headers):
    rec = await _create(client, auth_headers)
    assert rec["status"] == "pending"
    assert rec["priority"] == "medium"
    assert rec["createdAt"] and rec["updatedAt"]

    r = await client.get("/api/recommendations", headers=auth_headers)
    assert r.status_code == 200
    assert [x["id"] for x in r.json()] == [rec["id"]]


@pytest.mark.asyncio
async def test_invalid_category(client, auth_headers):
    crop_id, protocol_id = await _catalog_ids(client)
    r = await client.post(
        "/api/recommendations",
        json={
            "cropId": crop_id,
            "protocolId": protocol_id,
            "title": "x",
            "description": "y",
            "category": "astrology",
        },
        headers=auth_headers,
    )
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_update(client, auth_headers):
    rec = await _create(client, auth_headers)

    r = await client.put(
        f"/api/recommendations/{rec['id']}",
        json={"status": "completed"},
        headers=auth_headers,
    )
    assert r.status_code == 200
    updated = r.json()
    assert updated["status"] == "completed"
    assert updated["title"] == rec["title"]


@BOTH_BACKENDS
@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["title", "description", "category", "status", "priority"])
async def test_update_rejects_null(client, auth_headers, field):
    rec = await _create(client, auth_headers)

    r = await client.put(f"/api/recommendations/{rec['id']}", json={field: None}, headers=auth_headers)
    assert r.status_code == 400

    stored = (await client.get(f"/api/recommendations/{rec['id']}", headers=auth_headers)).json()
    assert stored[field] == rec[field]


@pytest.mark.asyncio
async def test_delete(client, auth_headers):
    rec = await _create(client, auth_headers)

    r = await client.delete(f"/api/recommendations/{rec['id']}", headers=auth_headers)
    assert r.status_code == 204

    r = await client.get(f"/api/recommendations/{rec['id']}", headers=auth_headers)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_other_users_recommendation_is_not_found(client, make_user):
    _, owner = await make_user()
    _, stranger = await make_user()
    rec = await _create(client, owner)

    assert (await client.get(f"/api/recommendations/{rec['id']}", headers=stranger)).status_code == 404
    assert (
        await client.put(f"/api/recommendations/{rec['id']}", json={"status": "active"}, headers=stranger)
    ).status_code == 404
    assert (await client.delete(f"/api/recommendations/{rec['id']}", headers=stranger)).status_code == 404
    assert (await client.get("/api/recommendations", headers=stranger)).json() == []


@pytest.mark.asyncio
async def test_generate(client, auth_headers):
    crop_id, protocol_id = await _catalog_ids(client)

    r = await client.post(
        "/api/recommendations/generate",
        json={"cropId": crop_id, "protocolId": protocol_id},
        headers=auth_headers,
    )
    assert r.status_code == 201
    recs = r.json()
    assert [(x["category"], x["status"], x["priority"]) for x in recs] == [
        ("soil_management", "active", "high"),
        ("pest_management", "pending", "medium"),
        ("crop_management", "scheduled", "medium"),
    ]

    listed = (await client.get("/api/recommendations", headers=auth_headers)).json()
    assert len(listed) == 3


@pytest.mark.asyncio
async def test_generate_unknown_crop(client, auth_headers):
    _, protocol_id = await _catalog_ids(client)
    r = await client.post(
        "/api/recommendations/generate",
        json={"cropId": "nope", "protocolId": protocol_id},
        headers=auth_headers,
    )
    assert r.status_code == 404
