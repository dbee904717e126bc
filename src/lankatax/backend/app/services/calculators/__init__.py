"""Domain-specific calculation helpers."""

from .brackets import BAND_WIDTH, calculate_bracket_tax
from .reliefs import reconcile
from .utils import (
    RoundingRule,
    as_json_number,
    clamp,
    format_percentage,
    normalise_amount,
    round_currency,
)

__all__ = [
    "BAND_WIDTH",
    "RoundingRule",
    "as_json_number",
    "calculate_bracket_tax",
    "clamp",
    "format_percentage",
    "normalise_amount",
    "reconcile",
    "round_currency",
]
