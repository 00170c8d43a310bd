"""Tests for the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from oee_dashboard.api.dependencies import get_dashboard_service
from oee_dashboard.main import app

DASHBOARD_QUERY = {"dateFrom": "2025-10-08", "dateTo": "2025-10-10"}


@pytest.fixture
def client(service):
    app.dependency_overrides[get_dashboard_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_dashboard_uses_camel_case(client):
    response = client.get("/api/v1/dashboard", params=DASHBOARD_QUERY)

    assert response.status_code == 200
    body = response.json()
    assert body["availableLines"] == ["31", "32", "41"]
    assert len(body["productionLog"]) == 6
    assert "avgOee" in body["summary"]
    assert len(body["performance"]["oeeHeatmap"]) == 9
    assert body["quality"]["defectPareto"][-1]["cumulativePercent"] == pytest.approx(100.0)


def test_dashboard_filters(client):
    response = client.get(
        "/api/v1/dashboard",
        params={**DASHBOARD_QUERY, "area": "Area Stamping", "shift": "B", "machineStatus": "active"},
    )

    assert response.status_code == 200
    assert [row["prodId"] for row in response.json()["productionLog"]] == [2]


def test_dashboard_inverted_range(client):
    response = client.get("/api/v1/dashboard", params={"dateFrom": "2025-10-11", "dateTo": "2025-10-10"})

    assert response.status_code == 422
    assert response.json()["error"] == "INVALID_RANGE"


def test_dashboard_missing_dates(client):
    response = client.get("/api/v1/dashboard")

    assert response.status_code == 422
    assert response.json()["error"] == "VALIDATION_ERROR"


def test_filter_options(client):
    response = client.get("/api/v1/dashboard/filters")

    assert response.status_code == 200
    assert response.json()["defaultDate"] == "2025-10-10"


def test_defect_correction_and_history(client):
    response = client.post(
        "/api/v1/production/1/defect-correction",
        json={"newDefectQuantity": 60, "actingUser": "qa.lead"},
    )

    assert response.status_code == 201
    assert response.json()["previousValue"] == 100
    assert response.json()["newValue"] == 60

    history = client.get("/api/v1/machines/M1/defect-adjustments").json()
    assert [(log["prodId"], log["newValue"]) for log in history] == [(1, 60)]


def test_defect_correction_unknown_record(client):
    response = client.post(
        "/api/v1/production/999/defect-correction",
        json={"newDefectQuantity": 1, "actingUser": "qa"},
    )

    assert response.status_code == 404
    assert response.json()["error"] == "NOT_FOUND"


def test_create_defect_for_unknown_machine(client):
    response = client.post("/api/v1/defects", json={
        "date": "2025-10-10", "machineId": "M404", "shift": "A",
        "defectType": "Scratch", "quantity": 3, "reporterId": 7,
    })

    assert response.status_code == 404


def test_create_and_update_defect(client):
    created = client.post("/api/v1/defects", json={
        "date": "2025-10-10", "machineId": "M1", "shift": "C",
        "defectType": "Burr", "quantity": 5, "reporterId": 7,
    })
    assert created.status_code == 201
    defect_id = created.json()["defectId"]

    updated = client.patch(f"/api/v1/defects/{defect_id}", json={"status": "Closed"})

    assert updated.status_code == 200
    assert updated.json()["status"] == "Closed"


def test_machine_and_production_endpoints(client):
    created = client.post("/api/v1/machines", json={
        "machineId": "M7", "machineName": "Press 7", "lineId": "31",
        "idealCycleTime": 0.3, "designSpeed": 3,
    })
    assert created.status_code == 201

    record = client.post("/api/v1/production", json={
        "date": "2025-10-10", "machineId": "M7", "itemCode": "ITEM-7",
        "actualQuantity": 100, "runTimeMinutes": 60, "shift": "B",
    })
    assert record.status_code == 201
    assert record.json()["lineId"] == "31"
    assert record.json()["idealCycleTime"] == 0.3

    updated = client.put("/api/v1/machines/M7", json={"status": "inactive"})
    assert updated.json()["status"] == "inactive"


def test_maintenance_order_endpoints(client):
    created = client.post("/api/v1/maintenance-orders", json={
        "machineId": "M1", "type": "CM", "reportedById": 3,
        "symptom": "Noise", "createdAt": "2025-10-10T07:00:00",
    })
    assert created.status_code == 201

    order_id = created.json()["orderId"]
    done = client.patch(f"/api/v1/maintenance-orders/{order_id}", json={"status": "Done"})

    assert done.status_code == 200
    assert done.json()["completedAt"].startswith("2025-10-31T08:00")


def test_spare_part_endpoints(client):
    listed = client.get("/api/v1/spare-parts", params={"sortBy": "available", "direction": "descending"})
    assert [p["partCode"] for p in listed.json()] == ["BLT-1", "BRG-1"]

    flagged = client.post("/api/v1/spare-parts/1/flag")
    assert flagged.json()["flaggedForOrder"] is True

    updated = client.put("/api/v1/spare-parts/1", json={"available": 30})
    assert updated.json()["available"] == 30

    missing = client.post("/api/v1/spare-parts/99/flag")
    assert missing.status_code == 404


def test_pm_schedule_endpoint(client):
    response = client.get("/api/v1/maintenance/pm-schedule", params={**DASHBOARD_QUERY, "sortBy": "machineId"})

    assert response.status_code == 200
    assert [s["machineId"] for s in response.json()] == ["M1", "M2"]


def test_metrics_endpoint(client):
    client.get("/api/v1/dashboard", params=DASHBOARD_QUERY)

    response = client.get("/metrics")

    assert response.status_code == 200
    assert "oee_dashboard_queries_total" in response.text


def test_null_updates_are_rejected(client):
    part = client.put("/api/v1/spare-parts/1", json={"available": None})
    machine = client.put("/api/v1/machines/M1", json={"lineId": None, "status": None})

    assert part.status_code == 422
    assert part.json()["error"] == "VALIDATION_ERROR"
    assert machine.status_code == 422

    listed = client.get("/api/v1/spare-parts", params={"sortBy": "partCode"})
    assert [p["available"] for p in listed.json()] == [20, 2]
    assert client.get("/api/v1/dashboard", params=DASHBOARD_QUERY).status_code == 200
