"""Regression coverage ensuring calculator outputs stay stable."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from lankatax.backend.app.services.calculation_service import calculate_tax

_DATA_PATH = Path(__file__).resolve().parents[1] / "data" / "regression_scenarios.json"


def _assert_matches(actual: object, expected: object) -> None:
    if isinstance(expected, bool):
        assert actual is expected
    else:
        assert actual == pytest.approx(expected)


@pytest.mark.parametrize(
    "scenario",
    json.loads(_DATA_PATH.read_text("utf-8")),
    ids=lambda item: item["name"],
)
def test_calculate_tax_matches_regression_scenario(scenario: dict[str, object]) -> None:
    """The calculation service returns the expected results for known payloads."""

    payload = scenario["payload"]
    expectations = scenario["expectations"]

    result = calculate_tax(payload)

    summary = result["summary"]
    for key, value in expectations["summary"].items():
        _assert_matches(summary[key], value)

    band_taxes = [row["tax"] for row in result["brackets"]]
    assert band_taxes == pytest.approx(expectations["brackets"])
