"""Tests for the HTTP API."""

from uuid import uuid4

from fastapi.testclient import TestClient

from clinical_nutrition.api.app import create_app
from tests.conftest import InMemoryPatientRepository, make_patient, patient_payload

HEADERS = {"X-API-Token": "api-token"}


def _client(container) -> TestClient:  # type: ignore[no-untyped-def]
    return TestClient(create_app(container))


def test_health(container) -> None:
    response = _client(container).get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_engine_requires_token(container) -> None:
    client = _client(container)
    body = {"patient": patient_payload()}

    assert client.post("/engine/energy", json=body).status_code == 401
    assert (
        client.post(
            "/engine/energy", json=body, headers={"X-API-Token": "wrong"}
        ).status_code
        == 401
    )


def test_energy_endpoint(container) -> None:
    response = _client(container).post(
        "/engine/energy",
        json={"patient": patient_payload(), "on": "2024-06-01"},
        headers=HEADERS,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["energy"]["bmr"] == 1780
    assert data["energy"]["tdee"] == 2136
    assert data["body_fat"] is None
    assert data["bmi"]["bmi"] == 24.7


def test_energy_endpoint_with_isak_readings(container) -> None:
    response = _client(container).post(
        "/engine/energy",
        json={
            "patient": patient_payload(),
            "measurement": {
                "measured_on": "2024-06-01",
                "weight_kg": 80,
                "height_cm": 180,
                "skinfolds": {"abdominal": {"val1": 19, "val2": 21}, "thigh": 15},
            },
        },
        headers=HEADERS,
    )

    assert response.status_code == 200
    body_fat = response.json()["body_fat"]
    assert body_fat["method"] == "primary"
    assert 3 <= body_fat["value"] <= 50


def test_goals_endpoint_blocks_pediatric_deficit(container) -> None:
    patient = patient_payload(
        birth_date="2014-01-01",
        weight_kg=35,
        height_cm=140,
        config={"calorie_preset": "moderate_deficit"},
    )

    response = _client(container).post(
        "/engine/goals",
        json={"patient": patient, "on": "2024-06-01"},
        headers=HEADERS,
    )

    assert response.status_code == 200
    goals = response.json()["goals"]
    assert goals["pediatric_deficit_blocked"] is True
    assert goals["kcal_adjustment"] == 0
    assert goals["warnings"][0]["severity"] == "critical"


def test_weekly_plan_endpoint(container) -> None:
    patient = patient_payload(allergies=[{"allergen": "dairy"}])

    response = _client(container).post(
        "/engine/plans/weekly",
        json={"patient": patient, "on": "2024-06-01"},
        headers=HEADERS,
    )

    assert response.status_code == 200
    plan = response.json()["plan"]
    assert [day["day"] for day in plan["days"]][0] == "Monday"
    assert len(plan["days"]) == 7
    names = {
        item["food"]["name"]
        for day in plan["days"]
        for meal in day["meals"]
        for item in meal["items"]
    }
    assert "Skim milk" not in names


def test_protocol_endpoints(container) -> None:
    client = _client(container)

    pediatric = client.post(
        "/engine/protocols/pediatric", json={"age_months": 7}, headers=HEADERS
    )
    anemia = client.post(
        "/engine/protocols/anemia",
        json={
            "age_months": 30,
            "weight_kg": 13,
            "sex": "female",
            "hemoglobin_g_dl": 11.5,
            "altitude_m": 3400,
        },
        headers=HEADERS,
    )
    invalid = client.post(
        "/engine/protocols/pediatric", json={"age_months": -1}, headers=HEADERS
    )

    assert pediatric.status_code == 200
    assert pediatric.json()["age_bracket"] == "6-9"
    assert anemia.status_code == 200
    assert anemia.json()["severity"] == "moderate"
    assert invalid.status_code == 422


def test_patient_assessment(container) -> None:
    repository = container.patient_service.repository
    assert isinstance(repository, InMemoryPatientRepository)
    patient = make_patient()
    repository.add(patient)
    client = _client(container)

    found = client.get(f"/patients/{patient.id}/assessment", headers=HEADERS)
    missing = client.get(f"/patients/{uuid4()}/assessment", headers=HEADERS)

    assert found.status_code == 200
    assert len(found.json()["plan"]["days"]) == 7
    assert missing.status_code == 404


def test_plan_history_lifecycle(container) -> None:
    client = _client(container)
    owner_id = str(uuid4())

    created = client.post(
        "/plans/history",
        json={
            "patient": patient_payload(),
            "owner_id": owner_id,
            "name": "Week 1",
            "on": "2024-06-01",
        },
        headers=HEADERS,
    )
    assert created.status_code == 201
    saved = created.json()
    plan_id = saved["id"]

    listing = client.get(
        "/plans/history", params={"owner_id": owner_id}, headers=HEADERS
    )
    assert [entry["id"] for entry in listing.json()["plans"]] == [plan_id]

    fetched = client.get(f"/plans/history/{plan_id}", headers=HEADERS)
    assert fetched.json()["name"] == "Week 1"

    clone = client.post(f"/plans/history/{plan_id}/clone", json={}, headers=HEADERS)
    assert clone.status_code == 201
    assert clone.json()["name"] == "Week 1 (copy)"

    item_id = saved["plan"]["days"][0]["meals"][0]["items"][0]["id"]
    revision = client.post(
        f"/plans/history/{plan_id}/quantity",
        json={"day_index": 0, "meal_index": 0, "item_id": item_id, "quantity_g": 40},
        headers=HEADERS,
    )
    assert revision.status_code == 201
    first_meal = revision.json()["plan"]["days"][0]["meals"][0]
    assert first_meal["items"][0]["quantity_g"] == 40

    invalid = client.post(
        f"/plans/history/{plan_id}/quantity",
        json={"day_index": 0, "meal_index": 0, "item_id": "missing", "quantity_g": 40},
        headers=HEADERS,
    )
    assert invalid.status_code == 400

    deleted = client.delete(f"/plans/history/{plan_id}", headers=HEADERS)
    assert deleted.status_code == 204
    assert client.get(f"/plans/history/{plan_id}", headers=HEADERS).status_code == 404
