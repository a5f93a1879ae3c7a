"""
API tests for the pricing service, run in-process through FastAPI's TestClient.
"""

import pytest
from fastapi.testclient import TestClient

from server import app, catalog_cache


@pytest.fixture
def client():
    catalog_cache.invalidate()
    with TestClient(app) as test_client:
        yield test_client
    catalog_cache.invalidate()


def manufacturer(catalog=None, **overrides):
    data = {
        "id": "mfg-api",
        "name": "Test Mfg",
        "tiers": [{"id": "standard", "name": "Standard"}],
    }
    if catalog is not None:
        data["catalog"] = catalog
    data.update(overrides)
    return data


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_normalize_sku(client):
    response = client.post("/api/sku/normalize", json={"raw": "sb 33"})
    assert response.status_code == 200
    assert response.json() == {"raw": "sb 33", "normalized": "SB33", "type": "Base"}


def test_normalize_unclassified_sku(client):
    response = client.post("/api/sku/normalize", json={"raw": "HNDL"})
    assert response.json()["type"] is None


def test_smart_keys(client):
    response = client.post("/api/sku/keys", json={"original_code": "B15", "type": "Base", "width": 15})
    assert response.status_code == 200
    data = response.json()
    assert data["exact"][:2] == ["B15", "B-15"]
    assert "B12" in data["similar"]


def test_catalog_match(client):
    payload = {"sku": "W3625", "catalog": {"W3624": {"Standard": 100}}, "tier_name": "Standard"}
    response = client.post("/api/catalog/match", json=payload)
    assert response.status_code == 200
    assert response.json()["price"] == 100
    assert "Neighbor" in response.json()["source"]

    payload["strict"] = True
    response = client.post("/api/catalog/match", json=payload)
    assert response.status_code == 200
    assert response.json() is None


def test_pricing_with_inline_catalog(client):
    payload = {
        "items": [
            {"original_code": "B15", "quantity": 2},
            {"original_code": "SUBTOTAL"},
            {"original_code": "ZZZ9"},
        ],
        "manufacturer": manufacturer({"B15": {"Standard": 1000}}),
        "tier_id": "standard",
        "financials": {"pricing_factor": 0.45, "global_margin": 35},
    }
    response = client.post("/api/pricing/calculate", json=payload)
    assert response.status_code == 200
    data = response.json()

    codes = [item["original_code"] for item in data["items"]]
    assert codes == ["B15", "ZZZ9"]
    b15 = data["items"][0]
    assert b15["unit_cost"] == 450
    assert b15["final_unit_price"] == 692.31
    assert b15["total_price"] == 1384.62
    assert data["items"][1]["source"] == "NOT FOUND"

    assert data["summary"]["sell_subtotal"] == 1384.62
    assert data["summary"]["not_found_count"] == 1


def test_pricing_without_catalog_needs_cache(client):
    payload = {
        "items": [{"original_code": "B15"}],
        "manufacturer": manufacturer(),
        "tier_id": "standard",
    }
    response = client.post("/api/pricing/calculate", json=payload)
    assert response.status_code == 404

    response = client.put("/api/manufacturers/mfg-api/catalog", json={"catalog": {"B15": {"Standard": 200}}})
    assert response.status_code == 200
    assert response.json() == {"manufacturer_id": "mfg-api", "sku_count": 1}

    response = client.post("/api/pricing/calculate", json=payload)
    assert response.status_code == 200
    assert response.json()["items"][0]["base_price"] == 200

    response = client.delete("/api/manufacturers/mfg-api/catalog")
    assert response.status_code == 200
    response = client.post("/api/pricing/calculate", json=payload)
    assert response.status_code == 404


def test_pricing_prepares_items(client):
    payload = {
        "items": [
            {"original_code": "b 15", "type": "Wall", "description": "Extracted Item"},
            {"original_code": "B15", "type": "Base"},
        ],
        "manufacturer": manufacturer({"B15": {"Standard": 100}}),
        "tier_id": "standard",
        "prepare_items": True,
    }
    response = client.post("/api/pricing/calculate", json=payload)
    items = response.json()["items"]
    assert len(items) == 1
    assert items[0]["quantity"] == 2
    assert items[0]["type"] == "Base"
    assert items[0]["description"] == 'Base Cabinet 15"W'


def test_pricing_with_room_specs_and_options(client):
    payload = {
        "items": [
            {"original_code": "B15", "room": "Kitchen"},
            {"original_code": "B15", "room": "Bath"},
        ],
        "manufacturer": manufacturer(
            {"B15": {"Standard": 200, "Premium": 300}},
            tiers=[{"id": "standard", "name": "Standard"}, {"id": "premium", "name": "Premium"}],
            options=[{
                "id": "opt-1", "name": "Finish: Painted", "section": "D-Finish",
                "category": "Finish", "pricing_type": "percentage", "price": 15,
            }],
        ),
        "tier_id": "standard",
        "specs": {"finish_color": "Finish: Painted"},
        "room_specs": {"Kitchen": {"price_group": "Premium"}},
        "financials": {"pricing_factor": 1},
    }
    response = client.post("/api/pricing/calculate", json=payload)
    assert response.status_code == 200
    by_room = {item["room"]: item for item in response.json()["items"]}
    assert by_room["Kitchen"]["base_price"] == 300
    assert by_room["Kitchen"]["options_price"] == 45
    assert by_room["Bath"]["options_price"] == 30
    assert by_room["Bath"]["applied_options"][0]["name"] == "Finish: Painted (15%)"
    assert response.json()["summary"]["room_subtotals"] == {"Bath": 230, "Kitchen": 345}


def test_validation_error(client):
    response = client.post("/api/pricing/calculate", json={"items": [{}], "manufacturer": manufacturer()})
    assert response.status_code == 422

    response = client.post("/api/sku/normalize", json={})
    assert response.status_code == 422


def test_quantity_must_be_positive(client):
    payload = {
        "items": [{"original_code": "B15", "quantity": 0}],
        "manufacturer": manufacturer({"B15": {"Standard": 100}}),
        "tier_id": "standard",
    }
    response = client.post("/api/pricing/calculate", json=payload)
    assert response.status_code == 422
