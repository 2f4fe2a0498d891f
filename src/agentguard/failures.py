"""Failure taxonomy and helpers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class FailureTag(str, Enum):
    """Standardized terminal outcomes for hosts and traces."""

    PARSE_AMBIGUITY = "PARSE_AMBIGUITY"
    CAPABILITY_ERROR = "CAPABILITY_ERROR"
    GUARDRAIL_REJECTED = "GUARDRAIL_REJECTED"
    CONTRACT_VIOLATION = "CONTRACT_VIOLATION"
    BUDGET_EXHAUSTED = "BUDGET_EXHAUSTED"


def contract_failure_tag(code: str) -> str:
    """Build a failure tag for a specific skill contract violation."""
    return f"{FailureTag.CONTRACT_VIOLATION.value}_{code.upper()}"


@dataclass(frozen=True)
class FailureEvent:
    """Structured failure event for hosts and traces."""

    tag: str
    reason: str
    details: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"tag": self.tag, "reason": self.reason}
        if self.details:
            payload["details"] = self.details
        return payload
