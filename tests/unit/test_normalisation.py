"""Unit tests for numeric normalisation helpers."""

from __future__ import annotations

from decimal import Decimal

import pytest

from lankatax.backend.app.services.calculators.utils import (
    MAX_AMOUNT,
    RoundingRule,
    as_json_number,
    clamp,
    format_percentage,
    normalise_amount,
    round_currency,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("1200000", Decimal("1200000")),
        ("Rs 1,200,000.50", Decimal("1200001")),
        ("1,499.49", Decimal("1499")),
        ("1.2.3", Decimal("1")),
        ("-25", Decimal("25")),
        (".", Decimal("0")),
        ("", Decimal("0")),
        ("abc", Decimal("0")),
        (None, Decimal("0")),
        (-25, Decimal("25")),
        (12.5, Decimal("13")),
        (Decimal("99.4"), Decimal("99")),
        (float("nan"), Decimal("0")),
    ],
)
def test_normalise_amount_whole_currency(raw: object, expected: Decimal) -> None:
    assert normalise_amount(raw, RoundingRule.WHOLE_CURRENCY) == expected


def test_normalise_amount_rounds_percentages_to_whole_points() -> None:
    assert normalise_amount("12.5%", RoundingRule.PERCENTAGE_ROUNDED) == Decimal("13")
    assert normalise_amount("12.49", RoundingRule.PERCENTAGE_ROUNDED) == Decimal("12")


def test_normalised_percentage_is_clamped_by_caller() -> None:
    value = normalise_amount("150", RoundingRule.PERCENTAGE_ROUNDED)

    assert value == Decimal("150")
    assert clamp(value, 0, 100) == Decimal("100")


def test_unparsable_currency_normalises_to_zero() -> None:
    assert normalise_amount("abc", RoundingRule.WHOLE_CURRENCY) == 0


def test_clamp_respects_lower_bound() -> None:
    assert clamp(Decimal("0"), 1, 100) == Decimal("1")
    assert clamp(Decimal("42"), 1, 100) == Decimal("42")


def test_round_currency_rounds_halves_away_from_zero() -> None:
    assert round_currency(Decimal("7407.5")) == Decimal("7408")
    assert round_currency(Decimal("-7407.5")) == Decimal("-7408")
    assert round_currency(Decimal("7407.4068")) == Decimal("7407")


def test_format_percentage_labels() -> None:
    assert format_percentage(Decimal("6")) == "6%"
    assert format_percentage(Decimal("12.5")) == "12.50%"


def test_as_json_number_prefers_integers() -> None:
    assert as_json_number(Decimal("36")) == 36
    assert isinstance(as_json_number(Decimal("36.00")), int)
    assert as_json_number(Decimal("12.5")) == pytest.approx(12.5)


@pytest.mark.parametrize(
    "raw",
    [
        "1" * 30,
        "9" * 40 + ".5",
        "Rs " + "9" * 60,
        1e30,
        -1e300,
        10**40,
        Decimal("1E+50"),
    ],
)
@pytest.mark.parametrize("rule", list(RoundingRule))
def test_normalise_amount_caps_oversized_input(raw: object, rule: RoundingRule) -> None:
    assert normalise_amount(raw, rule) == MAX_AMOUNT


def test_normalise_amount_keeps_largest_accepted_amount() -> None:
    assert normalise_amount("999,999,999,999,999", RoundingRule.WHOLE_CURRENCY) == MAX_AMOUNT
    assert normalise_amount("999999999999998.4", RoundingRule.WHOLE_CURRENCY) == Decimal(
        "999999999999998"
    )


def test_oversized_percentage_clamps_to_upper_bound() -> None:
    value = normalise_amount("9" * 40, RoundingRule.PERCENTAGE_ROUNDED)

    assert clamp(value, 1, 100) == Decimal("100")


def test_round_currency_handles_values_beyond_default_precision() -> None:
    huge = Decimal("1" * 35 + ".5")

    assert round_currency(huge) == Decimal("1" * 34 + "2")
