"""Integration tests for the tax calculation REST endpoint."""

from __future__ import annotations

import json
from http import HTTPStatus
from pathlib import Path
from typing import Dict, Iterable

import pytest
from flask.testing import FlaskClient

DATA_PATH = Path(__file__).resolve().parents[1] / "data" / "regression_scenarios.json"


def _load_scenarios() -> Iterable[Dict[str, object]]:
    with DATA_PATH.open("r", encoding="utf-8") as handle:
        return json.load(handle)


@pytest.mark.parametrize("scenario", _load_scenarios(), ids=lambda item: item["name"])
def test_calculation_endpoint_matches_regression_scenarios(
    client: FlaskClient, scenario: Dict[str, object]
) -> None:
    """Each regression scenario should remain stable over time."""

    response = client.post("/api/v1/calculations", json=scenario["payload"])
    assert response.status_code == HTTPStatus.OK

    result = response.get_json()
    expected = scenario["expectations"]

    summary = result["summary"]
    for key, value in expected["summary"].items():
        if isinstance(value, bool):
            assert summary[key] is value
        else:
            assert summary[key] == pytest.approx(value)

    taxes = [row["tax"] for row in result["brackets"]]
    assert taxes == pytest.approx(expected["brackets"])
    assert result["meta"]["assessment_year"] == scenario["payload"]["assessment_year"]
    assert result["meta"]["currency"] == "LKR"


def test_calculation_endpoint_uses_query_year(client: FlaskClient) -> None:
    """The assessment year may be supplied through the query string."""

    response = client.post(
        "/api/v1/calculations?assessment_year=2023/2024",
        json={"income": [{"category": "employment", "gross_amount": 1_700_000}]},
    )

    assert response.status_code == HTTPStatus.OK
    payload = response.get_json()
    assert payload["meta"]["assessment_year"] == "2023/2024"
    assert payload["summary"]["taxable_income"] == pytest.approx(500_000)
    assert payload["summary"]["gross_tax_liability"] == pytest.approx(30_000)
    assert response.headers["Cache-Control"] == "no-store"


def test_calculation_endpoint_returns_bad_request_for_invalid_json(
    client: FlaskClient,
) -> None:
    """Invalid payloads should return a structured 400 response."""

    response = client.post(
        "/api/v1/calculations",
        data="not-json",
        content_type="text/plain",
    )

    assert response.status_code == HTTPStatus.BAD_REQUEST
    payload = response.get_json()
    assert payload["error"] == "bad_request"
    assert "JSON" in payload["message"].upper()


def test_calculation_endpoint_handles_service_errors(client: FlaskClient) -> None:
    """Domain validation errors should surface as 400 responses."""

    response = client.post(
        "/api/v1/calculations",
        json={
            "assessment_year": "2024/2025",
            "income": [{"category": "employment", "gross_amount": -1}],
        },
    )

    assert response.status_code == HTTPStatus.BAD_REQUEST
    payload = response.get_json()
    assert payload["error"] == "validation_error"
    assert "cannot be negative" in payload["message"].lower()


def test_calculation_endpoint_requires_assessment_year(client: FlaskClient) -> None:
    response = client.post("/api/v1/calculations", json={"income": []})

    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert response.get_json()["error"] == "validation_error"


def test_calculation_endpoint_reports_unknown_year(client: FlaskClient) -> None:
    """Years without a configured policy are reported as not found."""

    response = client.post(
        "/api/v1/calculations",
        json={"assessment_year": "1999/2000", "income": []},
    )

    assert response.status_code == HTTPStatus.NOT_FOUND
    payload = response.get_json()
    assert payload["error"] == "policy_not_found"
    assert payload["assessment_year"] == "1999/2000"
    assert "1999/2000" in payload["message"]


def test_calculation_endpoint_itemises_income_and_credits(client: FlaskClient) -> None:
    payload = {
        "assessment_year": "2024/2025",
        "income": [
            {"category": "rent", "label": "Flat", "gross_amount": 2_000_000},
            {
                "category": "foreign_income",
                "gross_amount": 1_000_000,
                "tax_already_withheld": 20_000,
            },
        ],
    }

    response = client.post("/api/v1/calculations", json=payload)
    assert response.status_code == HTTPStatus.OK

    result = response.get_json()
    income = {row["category"]: row for row in result["income"]}
    assert income["rent"]["label"] == "Flat"
    assert income["rent"]["assessable_amount"] == pytest.approx(2_000_000)

    credits = {row["category"]: row for row in result["credits"]}
    assert credits["rent"]["statutory_credit"] == pytest.approx(200_000)
    assert credits["foreign_income"]["statutory_credit"] == pytest.approx(150_000)
    assert credits["foreign_income"]["tax_already_withheld"] == pytest.approx(20_000)
    assert credits["foreign_income"]["total"] == pytest.approx(170_000)
    assert result["summary"]["credits_applied"] == pytest.approx(370_000)

    reliefs = {row["type"]: row["amount"] for row in result["reliefs"]}
    assert reliefs == {"personal_relief": 1_200_000, "rent_relief": 500_000}


def test_calculation_endpoint_rejects_oversized_amounts(client: FlaskClient) -> None:
    response = client.post(
        "/api/v1/calculations",
        json={
            "assessment_year": "2024/2025",
            "income": [{"category": "employment", "gross_amount": 1e30}],
        },
    )

    assert response.status_code == HTTPStatus.BAD_REQUEST
    payload = response.get_json()
    assert payload["error"] == "validation_error"
    assert "income.0.gross_amount" in payload["message"]
