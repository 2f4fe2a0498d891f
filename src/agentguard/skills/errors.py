"""Skill contract violations."""

from __future__ import annotations

from agentguard.errors import AgentGuardError


class SkillError(AgentGuardError):
    """Base class; ``code`` is stable and machine-checkable."""

    code = "SkillError"
    retryable = False

    def __init__(self, detail: str) -> None:
        super().__init__(f"{self.code}: {detail}")
        self.detail = detail

    @property
    def reason(self) -> str:
        return str(self)


class EmptyInput(SkillError):
    code = "EmptyInput"

    def __init__(self) -> None:
        super().__init__("the input text is empty")


class InvalidTarget(SkillError):
    code = "InvalidTarget"

    def __init__(self, target: str) -> None:
        super().__init__(f"unknown target '{target}'")
        self.target = target


class MalformedOutput(SkillError):
    code = "MalformedOutput"
    retryable = True


class SchemaViolation(SkillError):
    code = "SchemaViolation"
    retryable = True


class HallucinationDetected(SkillError):
    code = "HallucinationDetected"
    retryable = True

    def __init__(self, value: str) -> None:
        super().__init__(f"'{value}' not found in source text")
        self.value = value
