"""Crop field + monitoring reading tests."""

import pytest

from tests.conftest import BOTH_BACKENDS


async def _create_field(client, headers, **overrides):
    crop = (await client.get("/api/crops")).json()[0]
    body = {"name": "Talhão 1", "cropId": crop["id"], "area": 12.5}
    body.update(overrides)
    r = await client.post("/api/monitoring/fields", json=body, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


# ═══════════════════════════════════════════════════════════
# Fields
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_create_field_defaults(client, auth_headers):
    field = await _create_field(client, auth_headers)
    assert field["growthStage"] == "planted"
    assert field["status"] == "active"
    assert field["area"] == 12.5


@pytest.mark.asyncio
async def test_list_fields_only_own(client, make_user):
    _, alice = await make_user()
    _, bob = await make_user()
    field = await _create_field(client, alice)

    assert [f["id"] for f in (await client.get("/api/monitoring/fields", headers=alice)).json()] == [field["id"]]
    assert (await client.get("/api/monitoring/fields", headers=bob)).json() == []


@pytest.mark.asyncio
async def test_update_field(client, auth_headers):
    field = await _create_field(client, auth_headers)
    r = await client.put(
        f"/api/monitoring/fields/{field['id']}",
        json={"growthStage": "flowering"},
        headers=auth_headers,
    )
    assert r.status_code == 200
    assert r.json()["growthStage"] == "flowering"
    assert r.json()["name"] == "Talhão 1"


@pytest.mark.asyncio
async def test_update_field_invalid_stage(client, auth_headers):
    field = await _create_field(client, auth_headers)
    r = await client.put(
        f"/api/monitoring/fields/{field['id']}",
        json={"growthStage": "sleeping"},
        headers=auth_headers,
    )
    assert r.status_code == 400


@BOTH_BACKENDS
@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{"name": None}, {"area": None}, {"cropId": None}, {"status": None}])
async def test_update_field_rejects_null_for_required_columns(client, auth_headers, body):
    field = await _create_field(client, auth_headers)

    r = await client.put(f"/api/monitoring/fields/{field['id']}", json=body, headers=auth_headers)
    assert r.status_code == 400

    [stored] = (await client.get("/api/monitoring/fields", headers=auth_headers)).json()
    assert stored["name"] == "Talhão 1"
    assert stored["area"] == 12.5
    assert stored["status"] == "active"


@BOTH_BACKENDS
@pytest.mark.asyncio
async def test_update_field_can_clear_optional_columns(client, auth_headers):
    field = await _create_field(client, auth_headers, latitude=-22.9, longitude=-47.06)

    r = await client.put(
        f"/api/monitoring/fields/{field['id']}",
        json={"latitude": None, "longitude": None},
        headers=auth_headers,
    )
    assert r.status_code == 200
    assert r.json()["latitude"] is None
    assert r.json()["name"] == "Talhão 1"


@pytest.mark.asyncio
async def test_other_users_field_is_not_found(client, make_user):
    _, owner = await make_user()
    _, stranger = await make_user()
    field = await _create_field(client, owner)

    r = await client.put(f"/api/monitoring/fields/{field['id']}", json={"name": "Mine"}, headers=stranger)
    assert r.status_code == 404
    r = await client.delete(f"/api/monitoring/fields/{field['id']}", headers=stranger)
    assert r.status_code == 404
    r = await client.get(f"/api/monitoring/data/{field['id']}", headers=stranger)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_delete_field(client, auth_headers):
    field = await _create_field(client, auth_headers)
    r = await client.delete(f"/api/monitoring/fields/{field['id']}", headers=auth_headers)
    assert r.status_code == 204
    assert (await client.get("/api/monitoring/fields", headers=auth_headers)).json() == []


# ═══════════════════════════════════════════════════════════
# Readings
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_ingest_reading(client, auth_headers):
    field = await _create_field(client, auth_headers)
    r = await client.post(
        "/api/monitoring/data",
        json={"fieldId": field["id"], "sensorType": "soil_moisture", "value": 31.5, "unit": "%"},
        headers=auth_headers,
    )
    assert r.status_code == 201
    reading = r.json()
    assert reading["id"]
    assert reading["timestamp"]
    assert reading["value"] == 31.5


@pytest.mark.asyncio
async def test_ingest_reading_invalid_sensor(client, auth_headers):
    field = await _create_field(client, auth_headers)
    r = await client.post(
        "/api/monitoring/data",
        json={"fieldId": field["id"], "sensorType": "vibes", "value": 1, "unit": "x"},
        headers=auth_headers,
    )
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_ingest_reading_for_unknown_field_is_accepted(client, auth_headers):
    r = await client.post(
        "/api/monitoring/data",
        json={"fieldId": "gateway-42", "sensorType": "ph", "value": 6.2, "unit": "pH"},
        headers=auth_headers,
    )
    assert r.status_code == 201


@pytest.mark.asyncio
async def test_readings_newest_first(client, auth_headers):
    field = await _create_field(client, auth_headers)
    for value in (1, 2, 3):
        await client.post(
            "/api/monitoring/data",
            json={"fieldId": field["id"], "sensorType": "humidity", "value": value, "unit": "%"},
            headers=auth_headers,
        )

    r = await client.get(f"/api/monitoring/data/{field['id']}", headers=auth_headers)
    assert r.status_code == 200
    assert [d["value"] for d in r.json()] == [3, 2, 1]


@pytest.mark.asyncio
async def test_latest_readings_by_sensor_type(client, auth_headers):
    field = await _create_field(client, auth_headers)
    for value in range(12):
        await client.post(
            "/api/monitoring/data",
            json={"fieldId": field["id"], "sensorType": "air_temperature", "value": value, "unit": "C"},
            headers=auth_headers,
        )
    await client.post(
        "/api/monitoring/data",
        json={"fieldId": field["id"], "sensorType": "ph", "value": 6.5, "unit": "pH"},
        headers=auth_headers,
    )

    r = await client.get(
        f"/api/monitoring/data/{field['id']}",
        params={"sensorType": "air_temperature"},
        headers=auth_headers,
    )
    assert r.status_code == 200
    values = [d["value"] for d in r.json()]
    assert values == list(range(11, 1, -1))
