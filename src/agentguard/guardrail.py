"""Plausibility guardrails for capability output.

These are correctness checks, not moderation: they catch results that look
like success but carry no usable data (an empty listing, an ``ls -l``
``total`` header on its own) so the host fails loudly instead of letting the
model build an answer on top of them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, model_validator

from agentguard.capability import CapabilityResult, ResultCategory

EMPTY_OUTPUT = "empty output"
METADATA_ONLY = "metadata-only output"
LACKS_SUBSTANCE = "lacks substantive content"


class ValidationOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    accept: bool
    reason: str | None = None

    @model_validator(mode="after")
    def _reason_only_on_reject(self) -> "ValidationOutcome":
        if self.accept and self.reason is not None:
            raise ValueError("an accepted outcome carries no reason")
        if not self.accept and not self.reason:
            raise ValueError("a rejected outcome needs a reason")
        return self

    @classmethod
    def accepted(cls) -> "ValidationOutcome":
        return cls(accept=True)

    @classmethod
    def rejected(cls, reason: str) -> "ValidationOutcome":
        return cls(accept=False, reason=reason)


def _is_total_line(trimmed: str) -> bool:
    if len(trimmed.splitlines()) != 1:
        return False
    parts = trimmed.split()
    return (
        len(parts) == 2
        and parts[0].lower() == "total"
        and parts[1].isascii()
        and parts[1].isdigit()
    )


def validate_output(output: str) -> ValidationOutcome:
    """Judge a successful capability's raw text output."""
    trimmed = output.strip()
    if not trimmed:
        return ValidationOutcome.rejected(EMPTY_OUTPUT)
    if _is_total_line(trimmed):
        return ValidationOutcome.rejected(METADATA_ONLY)
    if len(trimmed) < 3 or not any(char.isalnum() for char in trimmed):
        return ValidationOutcome.rejected(LACKS_SUBSTANCE)
    return ValidationOutcome.accepted()


@dataclass(frozen=True)
class GuardrailContext:
    result: CapabilityResult
    capability: str = ""
    query: str = ""


class Guardrail(ABC):
    name = "unnamed_guardrail"

    @abstractmethod
    def validate(self, context: GuardrailContext) -> ValidationOutcome:
        raise NotImplementedError


class PlausibilityGuard(Guardrail):
    name = "plausibility_guard"

    def validate(self, context: GuardrailContext) -> ValidationOutcome:
        return validate_output(context.result.output)


class GuardrailChain:
    """Run guards in order; the first rejection wins."""

    def __init__(self, guards: list[Guardrail] | None = None) -> None:
        self.guards: list[Guardrail] = list(guards or [])

    @classmethod
    def default(cls) -> "GuardrailChain":
        return cls([PlausibilityGuard()])

    def add(self, guard: Guardrail) -> "GuardrailChain":
        self.guards.append(guard)
        return self

    def __len__(self) -> int:
        return len(self.guards)

    def validate(self, context: GuardrailContext) -> ValidationOutcome:
        # failed executions propagate as errors, guards only judge successes
        if not context.result.success:
            return ValidationOutcome.accepted()
        for guard in self.guards:
            outcome = guard.validate(context)
            if not outcome.accept:
                return outcome
        return ValidationOutcome.accepted()


def categorize_result(
    result: CapabilityResult, outcome: ValidationOutcome
) -> tuple[ResultCategory, str | None]:
    """Map an executed, checked result onto the host-facing response category."""
    if not result.success:
        return ResultCategory.ERROR, result.error
    if not outcome.accept:
        return ResultCategory.REJECTED, outcome.reason
    return ResultCategory.ACCEPTED, None
