"""Pydantic models describing the assessment-year policy schema."""

from __future__ import annotations

import re
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Sequence

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    computed_field,
    field_validator,
    model_validator,
)

ASSESSMENT_YEAR_PATTERN = re.compile(r"^\d{4}/\d{4}$")

# Largest amount accepted anywhere in the engine. Fifteen digits keep every
# figure exact when it is rendered as a JSON float.
MAX_AMOUNT = Decimal("999999999999999")


class ConfigurationError(ValueError):
    """Raised when policy values violate schema expectations."""


class PolicyNotFound(LookupError):
    """Raised when no policy is available for the requested assessment year."""

    def __init__(self, assessment_year: str) -> None:
        super().__init__(f"No tax policy configured for assessment year {assessment_year}")
        self.assessment_year = assessment_year


class BracketPosition(str, Enum):
    """Ordered positions of the progressive bracket schedule."""

    FIRST = "first"
    SECOND = "second"
    THIRD = "third"
    FOURTH = "fourth"
    FIFTH = "fifth"
    OTHER = "other"

    @property
    def label(self) -> str:
        return _BRACKET_LABELS[self]

    @property
    def is_open_ended(self) -> bool:
        return self is BracketPosition.OTHER


_BRACKET_LABELS = {
    BracketPosition.FIRST: "1st Rs 500,000",
    BracketPosition.SECOND: "2nd Rs 500,000",
    BracketPosition.THIRD: "3rd Rs 500,000",
    BracketPosition.FOURTH: "4th Rs 500,000",
    BracketPosition.FIFTH: "5th Rs 500,000",
    BracketPosition.OTHER: "Remaining",
}


class ReliefField(str, Enum):
    """Editable relief and advance-tax settings."""

    PERSONAL_RELIEF = "personal_relief"
    RENT_RELIEF = "rent_relief"
    AIT_INTEREST = "ait_interest"
    AIT_DIVIDEND = "ait_dividend"
    WHT_RENT = "wht_rent"
    FOREIGN_INCOME_TAX_RATE = "foreign_income_tax_rate"

    @property
    def is_percentage(self) -> bool:
        return self is not ReliefField.PERSONAL_RELIEF


class IncomeCategory(str, Enum):
    """Sources of income recognised by the calculator."""

    EMPLOYMENT = "employment"
    RENT = "rent"
    INTEREST = "interest"
    DIVIDEND = "dividend"
    FOREIGN_INCOME = "foreign_income"
    BUSINESS = "business"
    OTHER = "other"


class ImmutableModel(BaseModel):
    """Base class that freezes instances and rejects unknown fields."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


def _require_percentage(name: str, value: Decimal, lower: int) -> None:
    if value < lower or value > 100:
        raise ConfigurationError(f"'{name}' must be a percentage between {lower} and 100")


class TaxRates(ImmutableModel):
    """Marginal rates, in percent, for each bracket position."""

    first: Decimal
    second: Decimal
    third: Decimal
    fourth: Decimal
    fifth: Decimal
    other: Decimal

    @model_validator(mode="after")
    def _validate_rates(self) -> TaxRates:
        for position, rate in self.ordered():
            _require_percentage(f"tax_brackets.{position.value}", rate, 1)
        return self

    def rate_for(self, position: BracketPosition) -> Decimal:
        if position is BracketPosition.FIRST:
            return self.first
        if position is BracketPosition.SECOND:
            return self.second
        if position is BracketPosition.THIRD:
            return self.third
        if position is BracketPosition.FOURTH:
            return self.fourth
        if position is BracketPosition.FIFTH:
            return self.fifth
        return self.other

    def ordered(self) -> tuple[tuple[BracketPosition, Decimal], ...]:
        """Return ``(position, rate)`` pairs from the first band to the last."""

        return tuple((position, self.rate_for(position)) for position in BracketPosition)


class Reliefs(ImmutableModel):
    """Personal relief plus percentage reliefs and advance-tax rates."""

    personal_relief: Decimal = Field(default=Decimal("0"))
    rent_relief: Decimal = Field(default=Decimal("0"))
    ait_interest: Decimal = Field(default=Decimal("0"))
    ait_dividend: Decimal = Field(default=Decimal("0"))
    wht_rent: Decimal = Field(default=Decimal("0"))
    foreign_income_tax_rate: Decimal = Field(default=Decimal("0"))

    @model_validator(mode="after")
    def _validate_values(self) -> Reliefs:
        if self.personal_relief < 0:
            raise ConfigurationError("'reliefs.personal_relief' must be non-negative")
        if self.personal_relief > MAX_AMOUNT:
            raise ConfigurationError(f"'reliefs.personal_relief' cannot exceed {MAX_AMOUNT}")
        for field in ReliefField:
            if field.is_percentage:
                _require_percentage(f"reliefs.{field.value}", self.value_for(field), 0)
        return self

    def value_for(self, field: ReliefField) -> Decimal:
        if field is ReliefField.PERSONAL_RELIEF:
            return self.personal_relief
        if field is ReliefField.RENT_RELIEF:
            return self.rent_relief
        if field is ReliefField.AIT_INTEREST:
            return self.ait_interest
        if field is ReliefField.AIT_DIVIDEND:
            return self.ait_dividend
        if field is ReliefField.WHT_RENT:
            return self.wht_rent
        return self.foreign_income_tax_rate

    def credit_rate(self, category: IncomeCategory) -> Decimal | None:
        """Return the advance-tax rate credited for ``category``, if any."""

        if category is IncomeCategory.INTEREST:
            return self.ait_interest
        if category is IncomeCategory.DIVIDEND:
            return self.ait_dividend
        if category is IncomeCategory.RENT:
            return self.wht_rent
        if category is IncomeCategory.FOREIGN_INCOME:
            return self.foreign_income_tax_rate
        return None


class PolicyConfiguration(ImmutableModel):
    """Authoritative tax policy for a single assessment year."""

    assessment_year: str
    tax_brackets: TaxRates
    reliefs: Reliefs = Field(default_factory=Reliefs)
    meta: Mapping[str, Any] = Field(default_factory=dict)

    @field_validator("assessment_year", mode="before")
    @classmethod
    def _validate_assessment_year(cls, value: Any) -> str:
        if not isinstance(value, str) or not ASSESSMENT_YEAR_PATTERN.match(value):
            raise ConfigurationError("Assessment years must use the 'YYYY/YYYY' format")
        return value

    @field_validator("meta", mode="before")
    @classmethod
    def _default_meta(cls, value: Any) -> Mapping[str, Any]:
        if value is None:
            return {}
        if not isinstance(value, Mapping):
            raise ConfigurationError("'meta' section must be a mapping if provided")
        return value


class PolicyManifestEntry(ImmutableModel):
    """Entry describing a configured assessment year in the manifest."""

    year: str
    filename: str | None = None
    status: str = "active"

    @field_validator("year", mode="before")
    @classmethod
    def _validate_year(cls, value: Any) -> str:
        if not isinstance(value, str) or not ASSESSMENT_YEAR_PATTERN.match(value):
            raise ConfigurationError("Manifest years must use the 'YYYY/YYYY' format")
        return value

    @computed_field
    @property
    def resolved_filename(self) -> str:
        return self.filename or f"{self.year.replace('/', '-')}.yaml"


class PolicyManifest(ImmutableModel):
    """Manifest describing the available policy files."""

    years: Sequence[PolicyManifestEntry]

    @model_validator(mode="after")
    def _validate_years(self) -> PolicyManifest:
        seen: set[str] = set()
        for entry in self.years:
            if entry.year in seen:
                raise ConfigurationError(
                    f"Duplicate year {entry.year} declared in the policy manifest"
                )
            seen.add(entry.year)
        return self

    def get_entry(self, year: str) -> PolicyManifestEntry:
        for entry in self.years:
            if entry.year == year:
                return entry
        raise KeyError(year)

    @computed_field
    @property
    def supported_years(self) -> tuple[str, ...]:
        return tuple(sorted(entry.year for entry in self.years))


__all__ = [
    "ASSESSMENT_YEAR_PATTERN",
    "MAX_AMOUNT",
    "BracketPosition",
    "ConfigurationError",
    "ImmutableModel",
    "IncomeCategory",
    "PolicyConfiguration",
    "PolicyManifest",
    "PolicyManifestEntry",
    "PolicyNotFound",
    "ReliefField",
    "Reliefs",
    "TaxRates",
    "ValidationError",
]
