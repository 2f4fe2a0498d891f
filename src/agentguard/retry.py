"""Single corrective retry for rejected capability results.

A rejection earns exactly one more attempt with stricter instructions. A
second rejection is final. Execution failures are never retried here.
"""

from __future__ import annotations

from typing import Callable, TypeVar

from agentguard.capability import CapabilityResult
from agentguard.errors import CapabilityFailed, CorrectionExhausted
from agentguard.guardrail import ValidationOutcome
from agentguard.util.logging import get_logger

T = TypeVar("T")

logger = get_logger("agentguard.retry")


def run_with_correction(
    attempt: Callable[[bool], T],
    check: Callable[[T], ValidationOutcome],
) -> T:
    """Run ``attempt(corrective)`` at most twice, returning the first accepted value.

    ``attempt`` receives ``False`` on the first call and ``True`` on the
    corrective retry. A ``CapabilityResult`` with ``success=False`` raises
    ``CapabilityFailed`` immediately.
    """
    first = _checked(attempt(False), check)
    if first[1].accept:
        return first[0]
    first_reason = first[1].reason or ""
    logger.info("retry.corrective reason=%s", first_reason)
    second = _checked(attempt(True), check)
    if second[1].accept:
        return second[0]
    raise CorrectionExhausted(first_reason, second[1].reason or "")


def _checked(value: T, check: Callable[[T], ValidationOutcome]) -> tuple[T, ValidationOutcome]:
    if isinstance(value, CapabilityResult) and not value.success:
        raise CapabilityFailed(value.error or "")
    return value, check(value)
