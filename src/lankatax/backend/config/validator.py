"""Utilities for validating policy files and surfacing issues."""

from __future__ import annotations

import argparse
from decimal import Decimal
from typing import Sequence

from .policy_store import (
    ConfigurationError,
    PolicyConfiguration,
    PolicyNotFound,
    ReliefField,
    available_years,
    load_policy,
)


def _format_scope(scope: str, message: str) -> str:
    return f"{scope}: {message}"


def _is_whole(value: Decimal) -> bool:
    return value == value.to_integral_value()


def _validate_tax_brackets(policy: PolicyConfiguration) -> list[str]:
    errors: list[str] = []
    for position, rate in policy.tax_brackets.ordered():
        if not _is_whole(rate):
            errors.append(
                _format_scope(
                    f"tax_brackets.{position.value}",
                    f"rate {rate} is not a whole percentage",
                )
            )
    return errors


def _validate_reliefs(policy: PolicyConfiguration) -> list[str]:
    errors: list[str] = []
    for field in ReliefField:
        value = policy.reliefs.value_for(field)
        if _is_whole(value):
            continue
        if field.is_percentage:
            message = f"rate {value} is not a whole percentage"
        else:
            message = f"amount {value} is not a whole currency amount"
        errors.append(_format_scope(f"reliefs.{field.value}", message))
    return errors


def validate_policy(policy: PolicyConfiguration) -> list[str]:
    """Return human-readable issues for values the settings form cannot produce."""

    errors: list[str] = []
    errors.extend(_validate_tax_brackets(policy))
    errors.extend(_validate_reliefs(policy))
    return errors


def validate_all_years(years: Sequence[str] | None = None) -> dict[str, list[str]]:
    """Validate all configured years and return issues keyed by year."""

    targets = years or available_years()
    results: dict[str, list[str]] = {}

    for year in targets:
        policy = load_policy(year)
        results[year] = validate_policy(policy)

    return results


def _build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate configured assessment-year policies and report issues."
    )
    parser.add_argument(
        "years",
        nargs="*",
        help="Assessment years such as 2024/2025 (defaults to all configured years)",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for running validations from the command line."""

    parser = _build_argument_parser()
    args = parser.parse_args(argv)
    years = args.years or available_years()

    if not years:
        parser.print_help()
        return 1

    exit_code = 0

    for year in years:
        try:
            policy = load_policy(year)
        except (PolicyNotFound, ConfigurationError) as error:
            print(f"[{year}] failed to load policy: {error}")
            exit_code = 1
            continue

        issues = validate_policy(policy)
        if issues:
            exit_code = 1
            print(f"[{year}] {len(issues)} issue(s) detected:")
            for issue in issues:
                print(f"  - {issue}")
        else:
            print(f"[{year}] OK")

    return exit_code


if __name__ == "__main__":  # pragma: no cover - CLI invocation
    raise SystemExit(main())
