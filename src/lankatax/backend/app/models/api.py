"""Pydantic models describing the public API surface."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from lankatax.backend.config.schema import (
    ASSESSMENT_YEAR_PATTERN,
    MAX_AMOUNT,
    IncomeCategory,
)

__all__ = [
    "IncomeLineInput",
    "IncomeEntryInput",
    "CalculationRequest",
    "Summary",
    "ReliefRow",
    "BracketRow",
    "CreditRow",
    "IncomeRow",
    "ResponseMeta",
    "CalculationResponse",
    "format_validation_error",
    "MAX_AMOUNT",
    "MAX_LINE_MULTIPLIER",
    "MAX_QUARTERLY_PAYMENTS",
]

MAX_QUARTERLY_PAYMENTS = 4
MAX_LINE_MULTIPLIER = Decimal("1000")

_HUNDRED = Decimal("100")


def _amount() -> Any:
    return Field(default=Decimal("0"), ge=0, le=MAX_AMOUNT)


class IncomeLineInput(BaseModel):
    """A single amount/multiplier row such as a monthly salary times twelve."""

    model_config = ConfigDict(extra="forbid")

    label: str | None = None
    amount: Decimal = _amount()
    multiplier: Decimal = Field(default=Decimal("1"), ge=0, le=MAX_LINE_MULTIPLIER)

    @property
    def product(self) -> Decimal:
        return self.amount * self.multiplier


class IncomeEntryInput(BaseModel):
    """Income source as submitted by a client.

    Business entries may set ``assessable_percentage``; only that share of
    the gross amount is assessable and the rest is treated as exempt.
    """

    model_config = ConfigDict(extra="forbid")

    category: IncomeCategory
    label: str | None = None
    gross_amount: Decimal = _amount()
    lines: list[IncomeLineInput] = Field(default_factory=list)
    tax_already_withheld: Decimal = _amount()
    exempt_amount: Decimal = _amount()
    assessable_percentage: Decimal | None = Field(default=None, ge=0, le=100)

    @model_validator(mode="after")
    def _validate_entry(self) -> "IncomeEntryInput":
        if self.lines and self.gross_amount > 0:
            raise ValueError("Provide either gross_amount or lines for an income entry, not both")
        if self.resolved_gross_amount > MAX_AMOUNT:
            raise ValueError(f"income lines cannot add up to more than {MAX_AMOUNT}")
        if (
            self.assessable_percentage is not None
            and self.category is not IncomeCategory.BUSINESS
        ):
            raise ValueError("assessable_percentage only applies to business income")
        return self

    @property
    def resolved_gross_amount(self) -> Decimal:
        if self.lines:
            return sum((line.product for line in self.lines), Decimal("0"))
        return self.gross_amount

    @property
    def resolved_exempt_amount(self) -> Decimal:
        """Explicit exemption plus the share left out by ``assessable_percentage``."""

        if self.assessable_percentage is None:
            return self.exempt_amount
        excluded = self.resolved_gross_amount * (_HUNDRED - self.assessable_percentage) / _HUNDRED
        return self.exempt_amount + excluded


class CalculationRequest(BaseModel):
    """Top-level payload accepted by the calculation endpoint."""

    model_config = ConfigDict(extra="forbid")

    assessment_year: str
    income: list[IncomeEntryInput] = Field(default_factory=list)
    solar_relief: Decimal = _amount()
    quarterly_payments: list[Decimal] = Field(
        default_factory=list, max_length=MAX_QUARTERLY_PAYMENTS
    )

    @field_validator("assessment_year")
    @classmethod
    def _validate_assessment_year(cls, value: str) -> str:
        if not ASSESSMENT_YEAR_PATTERN.match(value):
            raise ValueError("assessment year must use the 'YYYY/YYYY' format")
        return value

    @field_validator("quarterly_payments")
    @classmethod
    def _validate_quarterly_payments(cls, value: list[Decimal]) -> list[Decimal]:
        for payment in value:
            if payment < 0:
                raise ValueError("quarterly payments cannot be negative")
            if payment > MAX_AMOUNT:
                raise ValueError(f"quarterly payments cannot exceed {MAX_AMOUNT}")
        return value


class Summary(BaseModel):
    """Aggregated calculation results rounded to whole currency."""

    model_config = ConfigDict(extra="forbid")

    assessable_income: float
    total_reliefs: float
    taxable_income: float
    gross_tax_liability: float
    credits_applied: float
    net_payable: float
    quarterly_payments_total: float
    balance_payable: float
    is_refund: bool
    effective_tax_rate: float


class ReliefRow(BaseModel):
    """Relief deducted from assessable income."""

    model_config = ConfigDict(extra="forbid")

    type: str
    amount: float


class BracketRow(BaseModel):
    """One band of the progressive schedule."""

    model_config = ConfigDict(extra="forbid")

    position: str
    label: str
    width: float
    rate: float
    rate_label: str
    tax: float


class CreditRow(BaseModel):
    """Tax paid at source for one income category."""

    model_config = ConfigDict(extra="forbid")

    category: str
    statutory_credit: float
    tax_already_withheld: float
    total: float


class IncomeRow(BaseModel):
    """Income entry echoed back with its resolved amounts."""

    model_config = ConfigDict(extra="forbid")

    category: str
    label: str | None = None
    gross_amount: float
    exempt_amount: float
    assessable_amount: float


class ResponseMeta(BaseModel):
    """Metadata returned alongside the calculation output."""

    model_config = ConfigDict(extra="forbid")

    assessment_year: str
    currency: str | None = None


class CalculationResponse(BaseModel):
    """Full response payload produced by the calculation service."""

    model_config = ConfigDict(extra="forbid")

    summary: Summary
    reliefs: list[ReliefRow]
    brackets: list[BracketRow]
    credits: list[CreditRow]
    income: list[IncomeRow]
    meta: ResponseMeta


def format_validation_error(error: ValidationError) -> str:
    """Return a concise human-readable description of validation issues."""

    messages: list[str] = []
    for issue in error.errors():
        location = ".".join(str(part) for part in issue.get("loc", ()))
        message = issue.get("msg", "Invalid value")
        if "greater than or equal to 0" in message.lower():
            message = "value cannot be negative"
        if location:
            messages.append(f"{location}: {message}")
        else:
            messages.append(message)

    details = "; ".join(messages) if messages else str(error)
    return f"Invalid calculation payload: {details}"
