"""Helpers for normalising incoming JSON requests."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from flask import Request
from werkzeug.exceptions import BadRequest


def _read_json_object(req: Request) -> dict[str, Any]:
    data = req.get_json(silent=True)
    if data is None:
        raise BadRequest("Request body must be valid JSON")
    if not isinstance(data, Mapping):
        raise BadRequest("Request JSON must be an object")
    return dict(data)


def parse_calculation_payload(req: Request) -> dict[str, Any]:
    """Extract a calculation payload from ``req``.

    Clients that address the year through the query string
    (``?assessment_year=2024/2025``) may omit it from the body.
    """

    payload = _read_json_object(req)

    year_param = req.args.get("assessment_year")
    if year_param and "assessment_year" not in payload:
        payload["assessment_year"] = year_param

    return payload


def parse_policy_edits(req: Request) -> dict[str, Any]:
    """Extract raw settings edits from ``req``.

    Edits may be posted flat (``{"first": "7"}``) or grouped the way the
    settings screen lays them out (``{"tax_brackets": {...}, "reliefs": {...}}``).
    """

    payload = _read_json_object(req)

    edits: dict[str, Any] = {}
    for key, value in payload.items():
        if key in {"tax_brackets", "reliefs"}:
            if not isinstance(value, Mapping):
                raise BadRequest(f"'{key}' must be an object")
            edits.update({str(name): raw for name, raw in value.items()})
        else:
            edits[str(key)] = value
    return edits
