"""JSON problem payloads returned by the Flask blueprints."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from flask import jsonify

from lankatax.backend.config.schema import PolicyNotFound


@dataclass(frozen=True)
class ProblemResponse:
    """Error payload shaped as ``{"error": ..., "message": ..., **extra}``."""

    error: str
    status: int
    message: str | None = None
    extra: Mapping[str, Any] | None = None

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.error}
        if self.message:
            payload["message"] = self.message
        if self.extra:
            payload.update(self.extra)
        return payload

    def to_response(self) -> tuple[Any, int]:
        """Convert the problem into a Flask ``(response, status)`` tuple."""

        return jsonify(self.as_dict()), self.status


def problem_response(
    error: str,
    *,
    status: int,
    message: str | None = None,
    **extra: Any,
) -> ProblemResponse:
    """Build a :class:`ProblemResponse`; keyword extras are merged into the body."""

    return ProblemResponse(error=error, status=status, message=message, extra=extra or None)


def policy_not_found(error: PolicyNotFound) -> ProblemResponse:
    """404 problem naming the assessment year that has no policy."""

    return problem_response(
        "policy_not_found",
        status=404,
        message=str(error),
        assessment_year=error.assessment_year,
    )


__all__ = ["ProblemResponse", "policy_not_found", "problem_response"]
