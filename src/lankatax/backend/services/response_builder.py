"""Serialise calculation results into Flask responses."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Tuple

from flask import jsonify

ResponseTuple = Tuple[Any, int]


def build_calculation_response(payload: Mapping[str, Any]) -> ResponseTuple:
    """Return a JSON response for ``payload``.

    Results carry a taxpayer's income figures, so intermediaries are told not
    to keep a copy.
    """

    response = jsonify(payload)
    response.headers["Cache-Control"] = "no-store"
    return response, 200
