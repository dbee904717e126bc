"""Orchestrate request validation, reconciliation, and bracket calculations.

``calculate`` is the pure engine entry point: it takes an assessment year,
income entries and the policy for that year, and returns an immutable
:class:`CalculationResult`. ``calculate_tax`` wraps it for the HTTP layer by
validating a JSON payload, resolving the policy from the YAML store, and
serialising the itemised result. Profiling hooks live here so the calculator
modules can stay focused on arithmetic.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Mapping, Sequence
from contextlib import contextmanager
from decimal import Decimal
from time import perf_counter
from typing import Any

from pydantic import ValidationError

from lankatax.backend.app.models import (
    CalculationRequest,
    CalculationResponse,
    CalculationResult,
    IncomeEntry,
    format_validation_error,
)
from lankatax.backend.config.policy_store import (
    PolicyConfiguration,
    PolicyNotFound,
    load_policy,
)

from .calculators import (
    as_json_number,
    calculate_bracket_tax,
    format_percentage,
    reconcile,
    round_currency,
)
from .calculators.utils import ZERO

_LOGGER = logging.getLogger(__name__)

_RATE_PLACES = Decimal("0.0001")


def _profiling_enabled() -> bool:
    """Return ``True`` when calculation profiling should be captured."""

    flag = os.getenv("LANKATAX_PROFILE_CALCULATIONS", "")
    return flag.strip().lower() in {"1", "true", "yes", "on"}


@contextmanager
def _profile_section(name: str, store: dict[str, float] | None):
    """Capture the duration of a named section when profiling is enabled."""

    if store is None:
        yield
        return

    start = perf_counter()
    try:
        yield
    finally:
        store[name] = perf_counter() - start


def calculate(
    assessment_year: str,
    entries: Iterable[IncomeEntry],
    policy: PolicyConfiguration | None,
    *,
    solar_relief: Decimal = ZERO,
    quarterly_payments: Sequence[Decimal] = (),
) -> CalculationResult:
    """Compute the itemised tax liability for ``entries`` under ``policy``.

    ``policy`` must be the configuration for ``assessment_year``; anything
    else raises :class:`PolicyNotFound`. The result is derived purely from the
    arguments, so repeated calls with the same inputs compare equal.
    """

    if policy is None or policy.assessment_year != assessment_year:
        raise PolicyNotFound(assessment_year)

    reconciliation = reconcile(entries, policy.reliefs, solar_relief=solar_relief)
    gross_tax, bands = calculate_bracket_tax(
        reconciliation.taxable_income, policy.tax_brackets
    )
    credits_applied = reconciliation.credits_applied

    return CalculationResult(
        assessment_year=assessment_year,
        assessable_income=reconciliation.assessable_income,
        reliefs_applied=reconciliation.reliefs,
        taxable_income=reconciliation.taxable_income,
        bracket_breakdown=bands,
        gross_tax_liability=gross_tax,
        credit_breakdown=reconciliation.credits,
        credits_applied=credits_applied,
        net_payable=gross_tax - credits_applied,
        quarterly_payments=tuple(quarterly_payments),
    )


def _currency(value: Decimal) -> float:
    return float(round_currency(value))


def _build_response(
    request: CalculationRequest,
    entries: Sequence[IncomeEntry],
    result: CalculationResult,
    policy: PolicyConfiguration,
) -> dict[str, Any]:
    assessable = result.assessable_income
    if assessable > 0:
        effective_rate = (result.gross_tax_liability / assessable).quantize(_RATE_PLACES)
    else:
        effective_rate = ZERO

    reliefs = result.reliefs_applied
    summary = {
        "assessable_income": _currency(assessable),
        "total_reliefs": _currency(reliefs.total),
        "taxable_income": _currency(result.taxable_income),
        "gross_tax_liability": _currency(result.gross_tax_liability),
        "credits_applied": _currency(result.credits_applied),
        "net_payable": _currency(result.net_payable),
        "quarterly_payments_total": _currency(sum(result.quarterly_payments, ZERO)),
        "balance_payable": _currency(result.balance_payable),
        "is_refund": result.is_refund,
        "effective_tax_rate": float(effective_rate),
    }

    relief_rows = [
        {"type": "personal_relief", "amount": _currency(reliefs.personal)},
        {"type": "rent_relief", "amount": _currency(reliefs.rent)},
    ]
    if reliefs.solar > 0:
        relief_rows.append({"type": "solar_relief", "amount": _currency(reliefs.solar)})

    bracket_rows = [
        {
            "position": band.position.value,
            "label": band.label,
            "width": _currency(band.width),
            "rate": as_json_number(band.rate),
            "rate_label": format_percentage(band.rate),
            "tax": _currency(band.tax),
        }
        for band in result.bracket_breakdown
    ]

    credit_rows = [
        {
            "category": line.category.value,
            "statutory_credit": _currency(line.statutory_credit),
            "tax_already_withheld": _currency(line.tax_already_withheld),
            "total": _currency(line.total),
        }
        for line in result.credit_breakdown
    ]

    income_rows = [
        {
            "category": entry.category.value,
            "label": entry.label,
            "gross_amount": _currency(entry.gross_amount),
            "exempt_amount": _currency(entry.exempt_amount),
            "assessable_amount": _currency(entry.assessable_amount),
        }
        for entry in entries
    ]

    currency = policy.meta.get("currency")
    response_model = CalculationResponse.model_validate(
        {
            "summary": summary,
            "reliefs": relief_rows,
            "brackets": bracket_rows,
            "credits": credit_rows,
            "income": income_rows,
            "meta": {
                "assessment_year": request.assessment_year,
                "currency": currency if isinstance(currency, str) else None,
            },
        }
    )

    return response_model.model_dump(mode="json", exclude_none=True)


def _validate_request(payload: Mapping[str, Any] | CalculationRequest) -> CalculationRequest:
    if isinstance(payload, CalculationRequest):
        return payload

    if not isinstance(payload, Mapping):
        raise ValueError("Payload must be a mapping")
    if "assessment_year" not in payload:
        raise ValueError("Payload must include an assessment year")
    try:
        return CalculationRequest.model_validate(payload)
    except ValidationError as exc:
        raise ValueError(format_validation_error(exc)) from exc


def calculate_tax(
    payload: Mapping[str, Any] | CalculationRequest,
) -> dict[str, Any]:
    """Compute the tax summary for the provided payload."""

    request_model = _validate_request(payload)

    timings: dict[str, float] | None = {} if _profiling_enabled() else None
    overall_start = perf_counter() if timings is not None else None

    year = request_model.assessment_year
    with _profile_section("load_policy", timings):
        policy = load_policy(year)

    entries = [
        IncomeEntry(
            category=item.category,
            gross_amount=item.resolved_gross_amount,
            tax_already_withheld=item.tax_already_withheld,
            exempt_amount=item.resolved_exempt_amount,
            label=item.label,
        )
        for item in request_model.income
    ]

    with _profile_section("calculate", timings):
        result = calculate(
            year,
            entries,
            policy,
            solar_relief=request_model.solar_relief,
            quarterly_payments=request_model.quarterly_payments,
        )

    with _profile_section("serialise", timings):
        response = _build_response(request_model, entries, result, policy)

    if timings is not None and overall_start is not None:
        timings["total"] = perf_counter() - overall_start
        _LOGGER.debug(
            "calculate_tax timings (ms): %s",
            {name: round(duration * 1000, 3) for name, duration in timings.items()},
        )

    _LOGGER.debug(
        "Calculated %s for %d income entries: taxable=%s net_payable=%s",
        year,
        len(entries),
        result.taxable_income,
        result.net_payable,
    )

    return response


__all__ = ["PolicyNotFound", "calculate", "calculate_tax"]
