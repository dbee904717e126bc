"""Typed inputs and results shared across the calculation services.

Income entries are frozen Pydantic models so they validate once at the edge;
everything the engine derives from them is a frozen dataclass carrying exact
:class:`~decimal.Decimal` amounts. Rounding is left to serialisation.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from lankatax.backend.config.schema import BracketPosition, IncomeCategory

from .api import (
    BracketRow,
    CalculationRequest,
    CalculationResponse,
    CreditRow,
    IncomeEntryInput,
    IncomeLineInput,
    IncomeRow,
    ReliefRow,
    ResponseMeta,
    Summary,
    format_validation_error,
)

__all__ = [
    "BracketBand",
    "BracketRow",
    "CalculationRequest",
    "CalculationResponse",
    "CalculationResult",
    "CreditLine",
    "CreditRow",
    "IncomeEntry",
    "IncomeEntryInput",
    "IncomeLineInput",
    "IncomeRow",
    "Reconciliation",
    "ReliefRow",
    "ReliefsApplied",
    "ResponseMeta",
    "Summary",
    "format_validation_error",
]

_ZERO = Decimal("0")


class IncomeEntry(BaseModel):
    """One income source for a taxpayer in a given assessment year."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    category: IncomeCategory
    gross_amount: Decimal = Field(default=_ZERO, ge=0)
    tax_already_withheld: Decimal = Field(default=_ZERO, ge=0)
    exempt_amount: Decimal = Field(default=_ZERO, ge=0)
    label: str | None = None

    @property
    def assessable_amount(self) -> Decimal:
        """Gross amount less any exempt portion, never below zero."""

        included = self.gross_amount - self.exempt_amount
        return included if included > 0 else _ZERO


@dataclass(frozen=True)
class BracketBand:
    """Income consumed by one bracket and the tax it attracts."""

    position: BracketPosition
    label: str
    width: Decimal
    rate: Decimal
    tax: Decimal


@dataclass(frozen=True)
class ReliefsApplied:
    """Reliefs deducted from assessable income."""

    personal: Decimal
    rent: Decimal
    solar: Decimal

    @property
    def total(self) -> Decimal:
        return self.personal + self.rent + self.solar


@dataclass(frozen=True)
class CreditLine:
    """Tax paid at source for one income category."""

    category: IncomeCategory
    statutory_credit: Decimal
    tax_already_withheld: Decimal

    @property
    def total(self) -> Decimal:
        return self.statutory_credit + self.tax_already_withheld


@dataclass(frozen=True)
class Reconciliation:
    """Outcome of applying reliefs and advance-tax credits to income entries."""

    assessable_income: Decimal
    reliefs: ReliefsApplied
    taxable_income: Decimal
    credits: tuple[CreditLine, ...]

    @property
    def credits_applied(self) -> Decimal:
        return sum((line.total for line in self.credits), _ZERO)


@dataclass(frozen=True)
class CalculationResult:
    """Itemised tax liability for one taxpayer and assessment year."""

    assessment_year: str
    assessable_income: Decimal
    reliefs_applied: ReliefsApplied
    taxable_income: Decimal
    bracket_breakdown: tuple[BracketBand, ...]
    gross_tax_liability: Decimal
    credit_breakdown: tuple[CreditLine, ...]
    credits_applied: Decimal
    net_payable: Decimal
    quarterly_payments: tuple[Decimal, ...] = ()

    @property
    def balance_payable(self) -> Decimal:
        return self.net_payable - sum(self.quarterly_payments, _ZERO)

    @property
    def is_refund(self) -> bool:
        return self.balance_payable < 0
