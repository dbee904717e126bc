"""Numeric helpers shared by the calculator modules.

Amounts travel through the calculators as :class:`~decimal.Decimal` values so
that band products and relief percentages stay exact. Rounding to whole
currency happens only when results leave the engine.
"""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from enum import Enum
from typing import Any

from lankatax.backend.config.schema import MAX_AMOUNT

ZERO = Decimal("0")
HUNDRED = Decimal("100")
_WHOLE_UNIT = Decimal("1")

_NON_NUMERIC = re.compile(r"[^\d.]")


class RoundingRule(str, Enum):
    """Rounding applied when free-form numeric text is normalised."""

    WHOLE_CURRENCY = "whole_currency"
    PERCENTAGE_ROUNDED = "percentage_rounded"


def _parse_text(text: str) -> Decimal:
    cleaned = _NON_NUMERIC.sub("", text)
    # Anything after a second decimal point is ignored, as a browser's
    # parseFloat would.
    head, point, tail = cleaned.partition(".")
    candidate = head + point + tail.partition(".")[0]
    if not candidate.strip("."):
        return ZERO
    try:
        return Decimal(candidate)
    except InvalidOperation:
        return ZERO


def to_decimal(value: Any) -> Decimal:
    """Convert numbers to :class:`Decimal` without binary float artefacts."""

    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def normalise_amount(raw: Any, rule: RoundingRule) -> Decimal:
    """Return a non-negative whole amount parsed from ``raw``.

    Unparsable or empty input yields ``0`` and anything above
    :data:`MAX_AMOUNT` is capped to it; no error is ever raised. Both
    rounding rules round half up to a whole unit: currency has no fractional
    part and the settings form only accepts whole percentages.
    """

    if raw is None or isinstance(raw, bool):
        value = ZERO
    elif isinstance(raw, (int, float, Decimal)):
        try:
            value = abs(to_decimal(raw))
        except InvalidOperation:
            value = ZERO
        if not value.is_finite():
            value = ZERO
    else:
        value = _parse_text(str(raw))

    if value > MAX_AMOUNT:
        return MAX_AMOUNT
    return value.quantize(_WHOLE_UNIT, rounding=ROUND_HALF_UP)


def clamp(value: Decimal, lower: Decimal | int, upper: Decimal | int) -> Decimal:
    """Clamp ``value`` into ``[lower, upper]``."""

    if value < lower:
        return Decimal(lower)
    if value > upper:
        return Decimal(upper)
    return value


def percentage_of(amount: Decimal, rate: Decimal) -> Decimal:
    """Return ``rate`` percent of ``amount`` at full precision."""

    return amount * rate / HUNDRED


def round_currency(value: Decimal) -> Decimal:
    """Round monetary amounts to whole currency units, halves away from zero."""

    if not value.is_finite():
        raise ValueError(f"Cannot round non-finite amount {value}")
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + 2)
        return value.quantize(_WHOLE_UNIT, rounding=ROUND_HALF_UP)


def format_percentage(value: Decimal) -> str:
    """Return a human-readable percentage label for ``value`` (already in percent)."""

    if value == value.to_integral_value():
        return f"{int(value)}%"
    return f"{value:.2f}%"


def as_json_number(value: Decimal) -> int | float:
    """Render ``value`` as an ``int`` when whole, otherwise a ``float``."""

    if value == value.to_integral_value():
        return int(value)
    return float(value)


__all__ = [
    "HUNDRED",
    "MAX_AMOUNT",
    "RoundingRule",
    "ZERO",
    "as_json_number",
    "clamp",
    "format_percentage",
    "normalise_amount",
    "percentage_of",
    "round_currency",
    "to_decimal",
]
