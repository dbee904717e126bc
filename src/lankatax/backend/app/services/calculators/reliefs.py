"""Relief and advance-tax credit reconciliation."""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from lankatax.backend.app.models import (
    CreditLine,
    IncomeEntry,
    Reconciliation,
    ReliefsApplied,
)
from lankatax.backend.config.policy_store import IncomeCategory, Reliefs

from .utils import ZERO, percentage_of


def reconcile(
    entries: Iterable[IncomeEntry],
    reliefs: Reliefs,
    *,
    solar_relief: Decimal = ZERO,
) -> Reconciliation:
    """Derive taxable income and tax-paid-at-source credits for ``entries``.

    Taxable income is the assessable income less the personal relief, the
    rent relief percentage of rent income and any solar relief, floored at
    zero. Each category with an advance-tax rate earns ``gross * rate / 100``
    as a credit; explicitly withheld tax is added on top of it.
    """

    assessable_income = ZERO
    rent_income = ZERO
    statutory: dict[IncomeCategory, Decimal] = {}
    withheld: dict[IncomeCategory, Decimal] = {}

    for entry in entries:
        category = entry.category
        included = entry.assessable_amount
        assessable_income += included
        if category is IncomeCategory.RENT:
            rent_income += included

        rate = reliefs.credit_rate(category)
        credit = percentage_of(entry.gross_amount, rate) if rate is not None else ZERO
        statutory[category] = statutory.get(category, ZERO) + credit
        withheld[category] = withheld.get(category, ZERO) + entry.tax_already_withheld

    applied = ReliefsApplied(
        personal=reliefs.personal_relief,
        rent=percentage_of(rent_income, reliefs.rent_relief),
        solar=solar_relief,
    )

    taxable_income = assessable_income - applied.total
    if taxable_income < 0:
        taxable_income = ZERO

    credits = tuple(
        CreditLine(
            category=category,
            statutory_credit=statutory[category],
            tax_already_withheld=withheld[category],
        )
        for category in IncomeCategory
        if category in statutory
    )

    return Reconciliation(
        assessable_income=assessable_income,
        reliefs=applied,
        taxable_income=taxable_income,
        credits=credits,
    )


__all__ = ["reconcile"]
