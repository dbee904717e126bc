"""Expose assessment-year policies to the desktop client.

The settings screen reads the configured policy for a year and previews
edits before handing them to the settings store. Previews run the same
normalisation the engine relies on but are never persisted here.
"""

from __future__ import annotations

from typing import Any

from flask import Blueprint, jsonify, request

from lankatax.backend.app.services.calculators import as_json_number, format_percentage
from lankatax.backend.app.services.policy_service import apply_policy_edits
from lankatax.backend.config.policy_store import (
    PolicyConfiguration,
    ReliefField,
    available_years,
    load_manifest,
    load_policy,
)
from lankatax.backend.services import parse_policy_edits
from lankatax.backend.version import get_project_version

blueprint = Blueprint("policies", __name__, url_prefix="/api/v1/policies")


def get_policy_metadata() -> dict[str, Any]:
    """Expose runtime metadata derived from the policy manifest."""

    manifest = load_manifest()
    supported_years = list(manifest.supported_years)
    default_year = supported_years[-1] if supported_years else None
    return {
        "version": get_project_version(),
        "supported_years": supported_years,
        "default_year": default_year,
    }


def serialise_policy(policy: PolicyConfiguration) -> dict[str, Any]:
    """Convert ``policy`` into the JSON shape consumed by the settings screen."""

    brackets = [
        {
            "position": position.value,
            "label": position.label,
            "rate": as_json_number(rate),
            "rate_label": format_percentage(rate),
        }
        for position, rate in policy.tax_brackets.ordered()
    ]

    reliefs: dict[str, Any] = {}
    for field in ReliefField:
        reliefs[field.value] = as_json_number(policy.reliefs.value_for(field))

    status = None
    for entry in load_manifest().years:
        if entry.year == policy.assessment_year:
            status = entry.status
            break

    return {
        "assessment_year": policy.assessment_year,
        "status": status,
        "meta": dict(policy.meta),
        "tax_brackets": brackets,
        "reliefs": reliefs,
    }


@blueprint.get("")
def list_policies() -> tuple[Any, int]:
    """Return every configured policy with manifest metadata."""

    metadata = get_policy_metadata()
    payload = {
        "policies": [serialise_policy(load_policy(year)) for year in available_years()],
        "default_year": metadata["default_year"],
        "supported_years": metadata["supported_years"],
    }
    return jsonify(payload), 200


@blueprint.get("/<int:start>/<int:end>")
def get_policy(start: int, end: int) -> tuple[Any, int]:
    """Return the policy for the ``start/end`` assessment year."""

    policy = load_policy(f"{start}/{end}")
    return jsonify(serialise_policy(policy)), 200


@blueprint.post("/<int:start>/<int:end>/preview")
def preview_policy_edits(start: int, end: int) -> tuple[Any, int]:
    """Apply raw settings edits and return the clamped policy without saving it."""

    edits = parse_policy_edits(request)
    policy = apply_policy_edits(load_policy(f"{start}/{end}"), edits)
    return jsonify(serialise_policy(policy)), 200
