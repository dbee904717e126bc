"""Apply settings-form edits to a policy with the form's clamping rules.

Edits arrive as the raw text typed into the settings screen. Every value is
normalised rather than rejected: bracket rates land in ``[1, 100]``, relief
and advance-tax rates in ``[0, 100]`` and the personal relief becomes a whole,
non-negative currency amount.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, Union

from lankatax.backend.config.policy_store import (
    BracketPosition,
    PolicyConfiguration,
    ReliefField,
    Reliefs,
    TaxRates,
)

from .calculators import RoundingRule, clamp, normalise_amount

_LOGGER = logging.getLogger(__name__)

PolicyField = Union[BracketPosition, ReliefField]

BRACKET_RATE_BOUNDS = (Decimal("1"), Decimal("100"))
RELIEF_RATE_BOUNDS = (Decimal("0"), Decimal("100"))


def resolve_field(key: PolicyField | str) -> PolicyField:
    """Map an edit key onto the policy field it targets."""

    if isinstance(key, (BracketPosition, ReliefField)):
        return key
    for enumeration in (BracketPosition, ReliefField):
        try:
            return enumeration(key)
        except ValueError:
            continue
    raise ValueError(f"Unknown policy field '{key}'")


def normalise_field_value(field: PolicyField, raw: Any) -> Decimal:
    """Normalise and clamp ``raw`` for ``field``."""

    if isinstance(field, BracketPosition):
        value = normalise_amount(raw, RoundingRule.PERCENTAGE_ROUNDED)
        return clamp(value, *BRACKET_RATE_BOUNDS)
    if field.is_percentage:
        value = normalise_amount(raw, RoundingRule.PERCENTAGE_ROUNDED)
        return clamp(value, *RELIEF_RATE_BOUNDS)
    return normalise_amount(raw, RoundingRule.WHOLE_CURRENCY)


def apply_policy_edits(
    policy: PolicyConfiguration,
    edits: Mapping[PolicyField | str, Any],
) -> PolicyConfiguration:
    """Return a copy of ``policy`` with ``edits`` normalised and applied."""

    rates = {position: rate for position, rate in policy.tax_brackets.ordered()}
    reliefs = {field: policy.reliefs.value_for(field) for field in ReliefField}

    for key, raw in edits.items():
        field = resolve_field(key)
        value = normalise_field_value(field, raw)
        if isinstance(field, BracketPosition):
            rates[field] = value
        else:
            reliefs[field] = value

    _LOGGER.debug("Applied %d edit(s) to policy %s", len(edits), policy.assessment_year)

    return PolicyConfiguration(
        assessment_year=policy.assessment_year,
        tax_brackets=TaxRates.model_validate(
            {position.value: rate for position, rate in rates.items()}
        ),
        reliefs=Reliefs.model_validate(
            {field.value: value for field, value in reliefs.items()}
        ),
        meta=policy.meta,
    )


__all__ = [
    "BRACKET_RATE_BOUNDS",
    "PolicyField",
    "RELIEF_RATE_BOUNDS",
    "apply_policy_edits",
    "normalise_field_value",
    "resolve_field",
]
