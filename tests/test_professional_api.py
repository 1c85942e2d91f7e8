"""Premium geospatial analysis + dashboard stats tests."""

import pytest


@pytest.mark.asyncio
async def test_analyze_requires_premium(client, auth_headers):
    r = await client.post(
        "/api/professional/analyze",
        json={"latitude": -22.9, "longitude": -47.06},
        headers=auth_headers,
    )
    assert r.status_code == 403
    assert r.json() == {"message": "Premium subscription required"}


@pytest.mark.asyncio
async def test_analyze_as_premium(client, storage, make_user):
    user, headers = await make_user()
    await storage.update_user(user["id"], {"is_premium": True})

    r = await client.post(
        "/api/professional/analyze",
        json={"latitude": -22.9, "longitude": -47.06, "fileName": "talhao.kml", "fileType": "kml"},
        headers=headers,
    )
    assert r.status_code == 200
    body = r.json()
    assert body["results"]["soilType"] == "Latossolo Vermelho"
    assert body["analysis"]["userId"] == user["id"]
    assert body["analysis"]["analysisResults"] == body["results"]

    listed = (await client.get("/api/professional/analyses", headers=headers)).json()
    assert [a["id"] for a in listed] == [body["analysis"]["id"]]


@pytest.mark.asyncio
async def test_dashboard_stats_empty(client, auth_headers):
    r = await client.get("/api/dashboard/stats", headers=auth_headers)
    assert r.status_code == 200
    assert r.json() == {
        "cropsAnalyzed": 0,
        "avgProductivity": 0.0,
        "activeRecommendations": 0,
        "totalArea": 0.0,
    }


@pytest.mark.asyncio
async def test_dashboard_stats(client, auth_headers):
    crops = (await client.get("/api/crops")).json()
    protocols = (await client.get("/api/protocols")).json()

    for area in (10, 30):
        await client.post(
            "/api/productivity/calculate",
            json={"municipality": "Campinas", "state": "SP", "area": area, "cropId": crops[0]["id"]},
            headers=auth_headers,
        )
    await client.post(
        "/api/recommendations/generate",
        json={"cropId": crops[0]["id"], "protocolId": protocols[0]["id"]},
        headers=auth_headers,
    )

    stats = (await client.get("/api/dashboard/stats", headers=auth_headers)).json()
    assert stats["cropsAnalyzed"] == 2
    assert stats["avgProductivity"] == 3000.0
    assert stats["activeRecommendations"] == 1
    assert stats["totalArea"] == 40.0
