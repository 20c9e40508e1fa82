"""Tests for supply tracker API endpoints."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from app.services import supply_tracker
from app.services.supply_tracker import record_baseline, record_consumption, record_restock
from app.web.deps import get_db
from app.web.main import app

BASE = date(2026, 2, 25)


@pytest.fixture
def client(db):
    """Test client backed by the in-memory database."""

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def seeded(db):
    record_baseline(db, "dongmen", "", {"almond_bottle_300": Decimal(100)}, BASE)
    record_consumption(db, "dongmen", date(2026, 2, 26), "", "almond_tea_300", Decimal(10))
    record_consumption(db, "dongmen", date(2026, 2, 27), "", "almond_tea_300", Decimal(10))
    return db


def test_list_items(client):
    response = client.get("/api/v1/supply/items")
    assert response.status_code == 200
    keys = [item["key"] for item in response.json()]
    assert "bottle_cap" in keys
    cap = next(item for item in response.json() if item["key"] == "bottle_cap")
    assert sorted(cap["deduction_keys"]) == ["almond_tea_1000", "almond_tea_300"]


def test_list_zones(client, zoned_store):
    response = client.get(f"/api/v1/supply/{zoned_store}/zones")
    assert response.status_code == 200
    assert [z["zone_code"] for z in response.json()] == ["1F", "2F"]


def test_get_view(client, seeded):
    response = client.get("/api/v1/supply/dongmen", params={"date": "2026-02-28"})
    assert response.status_code == 200

    data = response.json()
    assert data["zone"] == ""
    assert data["merged"] is False
    assert data["incomplete"] is False
    assert data["chain_days"] == 2
    assert Decimal(data["yesterday_remaining"]["almond_bottle_300"]) == Decimal(80)
    assert Decimal(data["remaining_values"]["almond_bottle_300"]) == Decimal(80)


def test_preview_does_not_write(client, seeded):
    body = {"date": "2026-02-28", "restock": {"almond_bottle_300": "15"}}
    response = client.post("/api/v1/supply/dongmen/preview", json=body)
    assert response.status_code == 200
    assert Decimal(response.json()["remaining_values"]["almond_bottle_300"]) == Decimal(95)

    view = client.get("/api/v1/supply/dongmen", params={"date": "2026-02-28"}).json()
    assert view["restock_draft"] == {}


def test_preview_rejects_invalid_quantity(client, seeded):
    body = {"date": "2026-02-28", "restock": {"almond_bottle_300": "abc"}}
    response = client.post("/api/v1/supply/dongmen/preview", json=body)
    assert response.status_code == 422


@pytest.mark.parametrize("qty", ["1e30", "1000000000", "0.0001"])
def test_save_rejects_quantity_outside_column_range(client, seeded, qty):
    body = {"date": "2026-02-28", "restock": {"almond_bottle_300": qty}}
    response = client.post("/api/v1/supply/dongmen/save", json=body)
    assert response.status_code == 422
    view = client.get("/api/v1/supply/dongmen", params={"date": "2026-02-28"}).json()
    assert view["restock_draft"] == {}


def test_preview_accepts_largest_column_value(client, seeded):
    body = {"date": "2026-02-28", "restock": {"almond_bottle_300": "999999999.999"}}
    response = client.post("/api/v1/supply/dongmen/preview", json=body)
    assert response.status_code == 200


def test_preview_rejects_unknown_item(client, seeded):
    body = {"date": "2026-02-28", "restock": {"straw": "1"}}
    response = client.post("/api/v1/supply/dongmen/preview", json=body)
    assert response.status_code == 422
    assert "straw" in response.json()["detail"]


def test_save_and_reload(client, seeded):
    body = {
        "date": "2026-02-28",
        "restock": {"almond_bottle_300": "15"},
        "submitted_by": "amy",
    }
    response = client.post("/api/v1/supply/dongmen/save", json=body)
    assert response.status_code == 200

    data = response.json()
    assert data["status"] == "success"
    assert data["zone"] == ""
    saved = {row["supply_key"]: row for row in data["rows"]}
    assert Decimal(saved["almond_bottle_300"]["remaining_qty"]) == Decimal(95)

    view = client.get("/api/v1/supply/dongmen", params={"date": "2026-02-28"}).json()
    assert view["restock_draft"] == {"almond_bottle_300": "15"}

    # Next day chains from the restock, not from the stored snapshot
    view = client.get("/api/v1/supply/dongmen", params={"date": "2026-03-01"}).json()
    assert Decimal(view["yesterday_remaining"]["almond_bottle_300"]) == Decimal(95)


def test_save_merged_view_conflict(client, db, zoned_store):
    response = client.post(
        f"/api/v1/supply/{zoned_store}/save",
        json={"date": "2026-02-28", "restock": {"almond_bottle_300": "1"}},
    )
    assert response.status_code == 409
    assert "read only" in response.json()["detail"]


def test_save_zone_of_zoned_store(client, db, zoned_store):
    record_restock(db, zoned_store, date(2026, 2, 27), "2F", "bottle_cap", Decimal(30))
    response = client.post(
        f"/api/v1/supply/{zoned_store}/save",
        json={"date": "2026-02-28", "zone": "2F"},
    )
    assert response.status_code == 200
    saved = {row["supply_key"]: row for row in response.json()["rows"]}
    assert Decimal(saved["bottle_cap"]["remaining_qty"]) == Decimal(30)


def test_save_on_baseline_date_conflict(client, seeded):
    response = client.post("/api/v1/supply/dongmen/save", json={"date": "2026-02-25"})
    assert response.status_code == 409


def test_save_incomplete_view_conflict(client, seeded, monkeypatch):
    def boom(*args, **kwargs):
        raise OperationalError("SELECT ...", {}, Exception("connection reset"))

    monkeypatch.setattr(supply_tracker, "fetch_consumption_events", boom)

    view = client.get("/api/v1/supply/dongmen", params={"date": "2026-02-28"}).json()
    assert view["incomplete"] is True
    assert "consumption" in view["failed_sources"]

    response = client.post("/api/v1/supply/dongmen/save", json={"date": "2026-02-28"})
    assert response.status_code == 409


def test_zone_catalog_failure_is_503(client, monkeypatch):
    def boom(*args, **kwargs):
        raise OperationalError("SELECT ...", {}, Exception("connection reset"))

    monkeypatch.setattr(supply_tracker, "get_store_zones", boom)
    response = client.get("/api/v1/supply/dongmen", params={"date": "2026-02-28"})
    assert response.status_code == 503
    assert "retry" in response.json()["detail"]


def test_unknown_zone_is_404(client, zoned_store):
    response = client.get(
        f"/api/v1/supply/{zoned_store}", params={"date": "2026-02-28", "zone": "9F"}
    )
    assert response.status_code == 404


def test_history(client, seeded):
    response = client.get(
        "/api/v1/supply/dongmen/history", params={"start": "2026-02-25", "end": "2026-02-27"}
    )
    assert response.status_code == 200
    balances = response.json()["balances"]
    assert [Decimal(balances[d]["almond_bottle_300"]) for d in sorted(balances)] == [
        Decimal(100),
        Decimal(90),
        Decimal(80),
    ]


def test_history_bad_range(client):
    response = client.get(
        "/api/v1/supply/dongmen/history", params={"start": "2026-03-02", "end": "2026-03-01"}
    )
    assert response.status_code == 400


def test_metrics_exposes_ledger_counters(client, seeded):
    client.get("/api/v1/supply/dongmen", params={"date": "2026-02-28"})
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "supply_view_loads_total" in response.text
    assert "supply_chain_days" in response.text
