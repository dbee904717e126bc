"""Policy loader wrapping the shared schema models."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Sequence

import yaml
from pydantic import ValidationError

from .schema import (
    BracketPosition,
    ConfigurationError,
    IncomeCategory,
    PolicyConfiguration,
    PolicyManifest,
    PolicyManifestEntry,
    PolicyNotFound,
    ReliefField,
    Reliefs,
    TaxRates,
)

_LOGGER = logging.getLogger(__name__)

CONFIG_DIRECTORY = Path(
    os.getenv("LANKATAX_POLICY_DIRECTORY")
    or Path(__file__).resolve().parent / "data"
)
MANIFEST_FILE = CONFIG_DIRECTORY / "manifest.yaml"


def _load_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ConfigurationError("Policy file must define a mapping at the top level")
    return data


@lru_cache(maxsize=1)
def load_manifest() -> PolicyManifest:
    """Load and cache the policy manifest."""

    if not MANIFEST_FILE.exists():
        raise FileNotFoundError("Policy manifest not found")

    raw_manifest = _load_yaml(MANIFEST_FILE)

    try:
        return PolicyManifest.model_validate(raw_manifest)
    except ValidationError as error:
        raise ConfigurationError(f"Manifest validation failed: {error}") from error


@lru_cache(maxsize=8)
def load_policy(assessment_year: str) -> PolicyConfiguration:
    """Load the policy for ``assessment_year`` (``"YYYY/YYYY"``) from disk."""

    try:
        manifest_entry = load_manifest().get_entry(assessment_year)
    except KeyError as exc:
        raise PolicyNotFound(assessment_year) from exc

    policy_file = CONFIG_DIRECTORY / manifest_entry.resolved_filename
    if not policy_file.exists():
        _LOGGER.warning(
            "Manifest declares %s but %s is missing", assessment_year, policy_file.name
        )
        raise PolicyNotFound(assessment_year)

    raw_policy = _load_yaml(policy_file)
    raw_policy.setdefault("assessment_year", assessment_year)

    try:
        policy = PolicyConfiguration.model_validate(raw_policy)
    except ValidationError as error:
        raise ConfigurationError(
            f"Policy validation failed for {assessment_year}: {error}"
        ) from error

    if policy.assessment_year != assessment_year:
        raise ConfigurationError(
            f"Policy year mismatch: expected {assessment_year}, found {policy.assessment_year}"
        )

    _LOGGER.debug("Loaded policy for %s from %s", assessment_year, policy_file.name)
    return policy


def available_years() -> Sequence[str]:
    """Return the assessment years declared in the manifest."""

    return load_manifest().supported_years


__all__ = [
    "BracketPosition",
    "CONFIG_DIRECTORY",
    "ConfigurationError",
    "IncomeCategory",
    "MANIFEST_FILE",
    "PolicyConfiguration",
    "PolicyManifest",
    "PolicyManifestEntry",
    "PolicyNotFound",
    "ReliefField",
    "Reliefs",
    "TaxRates",
    "available_years",
    "load_manifest",
    "load_policy",
]
