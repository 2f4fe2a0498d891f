"""Deterministic decision engine and result guardrails for tool-using agents."""

from agentguard.capability import CapabilityResult, ResultCategory
from agentguard.engine import Step, advance
from agentguard.errors import AgentGuardError, TerminalStateError, WireFormatError
from agentguard.guardrail import (
    GuardrailChain,
    PlausibilityGuard,
    ValidationOutcome,
    validate_output,
)
from agentguard.protocol import Decision, Done, Inconclusive, InvokeSkill, InvokeTool, parse_decision
from agentguard.state import AgentState, ExecutionStatus

__version__ = "0.1.0"

__all__ = [
    "AgentGuardError",
    "AgentState",
    "CapabilityResult",
    "Decision",
    "Done",
    "ExecutionStatus",
    "GuardrailChain",
    "Inconclusive",
    "InvokeSkill",
    "InvokeTool",
    "PlausibilityGuard",
    "ResultCategory",
    "Step",
    "TerminalStateError",
    "ValidationOutcome",
    "WireFormatError",
    "advance",
    "parse_decision",
    "validate_output",
]
