"""Agent state machine: one parse -> decide -> advance cycle per call."""

from __future__ import annotations

from dataclasses import dataclass

from agentguard.errors import TerminalStateError
from agentguard.protocol import Decision, Done, Inconclusive, decision_kind, parse_decision
from agentguard.state import AgentState, ExecutionStatus
from agentguard.util.logging import get_logger, preview

logger = get_logger("agentguard.engine")


@dataclass(frozen=True)
class Step:
    decision: Decision
    state: AgentState


def advance(state: AgentState, model_output: str, detect_planning: bool = False) -> Step:
    """Consume one round of model output.

    The iteration limit is the number of calls allowed per task. A call that
    uses up the last iteration without a ``Done`` decision fails the task and
    returns ``Inconclusive`` in place of whatever the parser produced, so the
    caller never receives a capability request it has no budget to follow up.
    """
    if state.is_terminal:
        raise TerminalStateError(state.status.value)
    iteration = state.iteration + 1
    if iteration > state.iteration_limit:
        # only reachable from a state deserialized at its limit
        logger.debug(
            "engine.advance iteration=%d limit=%d forced=failed",
            iteration,
            state.iteration_limit,
        )
        failed = state.model_copy(
            update={"iteration": state.iteration_limit, "status": ExecutionStatus.FAILED}
        )
        return Step(decision=Inconclusive(raw_text=model_output), state=failed)

    decision = parse_decision(model_output, detect_planning=detect_planning)
    if isinstance(decision, Done):
        next_state = state.model_copy(
            update={
                "iteration": iteration,
                "status": ExecutionStatus.DONE,
                "final_answer": decision.answer,
            }
        )
    elif iteration >= state.iteration_limit:
        decision = Inconclusive(raw_text=model_output)
        next_state = state.model_copy(
            update={"iteration": iteration, "status": ExecutionStatus.FAILED}
        )
    else:
        next_state = state.model_copy(update={"iteration": iteration})
    logger.debug(
        "engine.advance iteration=%d limit=%d decision=%s status=%s output=%r",
        iteration,
        state.iteration_limit,
        decision_kind(decision),
        next_state.status.value,
        preview(model_output),
    )
    return Step(decision=decision, state=next_state)


def iterations_left(state: AgentState) -> int:
    if state.is_terminal:
        return 0
    return state.iteration_limit - state.iteration
