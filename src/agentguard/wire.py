"""Stateless step function for crossing process or sandbox boundaries.

Every call carries the whole serialized state in and out, so the engine can
sit behind a request handler that keeps nothing between invocations.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ValidationError

from agentguard.engine import advance
from agentguard.errors import WireFormatError
from agentguard.protocol import Decision, decision_from_wire, decision_to_wire
from agentguard.state import DEFAULT_ITERATION_LIMIT, AgentState


class StepInput(BaseModel):
    serialized_state: str
    model_output: str


class StepOutput(BaseModel):
    serialized_state: str
    decision: dict[str, Any]


def create_state(query: str, iteration_limit: int = DEFAULT_ITERATION_LIMIT) -> str:
    try:
        return AgentState.new(query, iteration_limit).to_json()
    except ValidationError as exc:
        raise WireFormatError(f"Invalid state: {exc}") from exc


def step(message: StepInput, detect_planning: bool = False) -> StepOutput:
    state = AgentState.from_json(message.serialized_state)
    result = advance(state, message.model_output, detect_planning=detect_planning)
    return StepOutput(
        serialized_state=result.state.to_json(),
        decision=decision_to_wire(result.decision),
    )


def run_step(input_json: str, detect_planning: bool = False) -> str:
    """Decode a StepInput document, advance once, encode the StepOutput."""
    try:
        message = StepInput.model_validate_json(input_json)
    except ValidationError as exc:
        raise WireFormatError(f"Invalid input JSON: {exc}") from exc
    return step(message, detect_planning=detect_planning).model_dump_json()


def read_step_output(output_json: str) -> tuple[AgentState, Decision]:
    """Decode a StepOutput document into ``(AgentState, Decision)``."""
    try:
        message = StepOutput.model_validate_json(output_json)
        decision = decision_from_wire(message.decision)
    except (ValidationError, ValueError) as exc:
        raise WireFormatError(f"Invalid output JSON: {exc}") from exc
    return AgentState.from_json(message.serialized_state), decision
