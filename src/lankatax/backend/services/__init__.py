"""Request and response helpers for the LankaTax HTTP layer."""

from .request_parser import parse_calculation_payload, parse_policy_edits
from .response_builder import build_calculation_response

__all__ = [
    "parse_calculation_payload",
    "parse_policy_edits",
    "build_calculation_response",
]
