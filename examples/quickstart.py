#!/usr/bin/env python3
"""
AgriScience Quickstart — a season in one script.

Registers a farmer → picks a crop → estimates productivity (IBGE or default
yield) → generates recommendations → creates a field → ingests readings →
raises and resolves an alert → prints dashboard stats.

Run with: python examples/quickstart.py

Requires: pip install httpx
Backend must be running: http://localhost:8000
"""

from _common import create_client


def main():
    client = create_client()

    # ── Catalog ───────────────────────────────────────────────────
    print("\n1. Loading catalog...")
    crops = client.get("/crops").json()
    protocols = client.get("/protocols").json()
    soy = next(c for c in crops if c["name"] == "Soja")
    organic = next(p for p in protocols if p["type"] == "organic")
    print(f"   {len(crops)} crops, {len(protocols)} protocols")

    # ── Productivity estimate ─────────────────────────────────────
    print("\n2. Estimating productivity for 50 ha of soy in Campinas/SP...")
    resp = client.post("/productivity/calculate", json={
        "municipality": "Campinas",
        "state": "SP",
        "area": 50,
        "cropId": soy["id"],
    })
    assert resp.status_code == 200, f"Failed: {resp.text}"
    data = resp.json()["data"]
    print(f"   Yield:      {data['yield']:.0f} kg/ha ({data['source']})")
    print(f"   Production: {data['totalProduction']:.1f} t")
    print(f"   Value:      R$ {data['marketValue']:,.2f}")

    # ── Recommendations ───────────────────────────────────────────
    print("\n3. Generating recommendations (organic protocol)...")
    resp = client.post("/recommendations/generate", json={
        "cropId": soy["id"],
        "protocolId": organic["id"],
    })
    assert resp.status_code == 201, f"Failed: {resp.text}"
    for rec in resp.json():
        print(f"   [{rec['priority']:6s}] {rec['title']} ({rec['status']})")

    # ── Field + readings ──────────────────────────────────────────
    print("\n4. Creating a monitored field...")
    resp = client.post("/monitoring/fields", json={
        "name": "Talhão Norte",
        "cropId": soy["id"],
        "area": 50,
        "latitude": -22.90,
        "longitude": -47.06,
    })
    assert resp.status_code == 201, f"Failed: {resp.text}"
    field = resp.json()
    print(f"   Field: {field['name']} ({field['id'][:8]}...)")

    print("\n5. Ingesting sensor readings...")
    for value in (34.0, 29.5, 21.0):
        resp = client.post("/monitoring/data", json={
            "fieldId": field["id"],
            "sensorType": "soil_moisture",
            "value": value,
            "unit": "%",
        })
        assert resp.status_code == 201, f"Failed: {resp.text}"
    latest = client.get(f"/monitoring/data/{field['id']}", params={"sensorType": "soil_moisture"}).json()
    print(f"   Latest soil moisture: {[r['value'] for r in latest]}")

    # ── Alert lifecycle ───────────────────────────────────────────
    print("\n6. Raising an irrigation alert...")
    resp = client.post("/monitoring/alerts", json={
        "fieldId": field["id"],
        "type": "irrigation",
        "severity": "high",
        "title": "Soil moisture below threshold",
        "message": "Soil moisture dropped to 21% (threshold 25%)",
        "actionRequired": "Start irrigation cycle",
        "triggerValue": 21.0,
        "thresholdValue": 25.0,
    })
    assert resp.status_code == 201, f"Failed: {resp.text}"
    alert = resp.json()
    unread = client.get("/monitoring/alerts", params={"unread": "true"}).json()
    print(f"   Unread alerts: {len(unread)}")

    client.put(f"/monitoring/alerts/{alert['id']}/read")
    resolved = client.put(f"/monitoring/alerts/{alert['id']}/resolve").json()
    print(f"   {resolved['message']} at {resolved['alert']['resolvedAt']}")

    # ── Dashboard ─────────────────────────────────────────────────
    print("\n7. Dashboard:")
    stats = client.get("/dashboard/stats").json()
    for key, value in stats.items():
        print(f"   {key}: {value}")

    print("\nDone.")


if __name__ == "__main__":
    main()
