"""Exception hierarchy shared by the engine, wire layer and hosts."""

from __future__ import annotations


class AgentGuardError(Exception):
    """Base class for every error raised by agentguard."""


class TerminalStateError(AgentGuardError):
    """Raised when ``advance`` is called on a finished task."""

    def __init__(self, status: str) -> None:
        super().__init__(f"cannot advance a task in terminal status '{status}'")
        self.status = status


class WireFormatError(AgentGuardError):
    """Raised when a step message or serialized state cannot be decoded."""


class CapabilityFailed(AgentGuardError):
    """A capability executor reported a genuine execution failure."""

    def __init__(self, error: str) -> None:
        super().__init__(error)
        self.error = error


class CorrectionExhausted(AgentGuardError):
    """Both the original attempt and its single corrective retry were rejected."""

    def __init__(self, first_reason: str, retry_reason: str) -> None:
        super().__init__(
            f"rejected after corrective retry: initial attempt: {first_reason}; "
            f"retry attempt: {retry_reason}"
        )
        self.first_reason = first_reason
        self.retry_reason = retry_reason
