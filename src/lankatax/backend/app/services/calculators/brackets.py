"""Progressive bracket calculator."""

from __future__ import annotations

from decimal import Decimal
from typing import Final

from lankatax.backend.app.models import BracketBand
from lankatax.backend.config.policy_store import TaxRates

from .utils import ZERO, percentage_of

BAND_WIDTH: Final = Decimal("500000")


def calculate_bracket_tax(
    taxable_income: Decimal, rates: TaxRates
) -> tuple[Decimal, tuple[BracketBand, ...]]:
    """Apply the six-band marginal schedule in ``rates`` to ``taxable_income``.

    The first five bands each absorb up to :data:`BAND_WIDTH`; the open-ended
    band takes whatever remains. Every band is reported, including those that
    consumed nothing, and the total is the unrounded sum of the band taxes.
    """

    if taxable_income < 0:
        raise ValueError("Taxable income cannot be negative")

    remaining = taxable_income
    bands: list[BracketBand] = []

    for position, rate in rates.ordered():
        if position.is_open_ended:
            consumed = remaining
        else:
            consumed = min(remaining, BAND_WIDTH)
        remaining -= consumed

        bands.append(
            BracketBand(
                position=position,
                label=position.label,
                width=consumed,
                rate=rate,
                tax=percentage_of(consumed, rate),
            )
        )

    total = sum((band.tax for band in bands), ZERO)
    return total, tuple(bands)


__all__ = ["BAND_WIDTH", "calculate_bracket_tax"]
