"""Typed per-task agent state."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from agentguard.errors import WireFormatError

DEFAULT_ITERATION_LIMIT = 5


class ExecutionStatus(str, Enum):
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"


class AgentState(BaseModel):
    """Immutable state of one task; only ``engine.advance`` derives new values."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    query: str
    iteration: int = Field(default=0, ge=0)
    iteration_limit: int = Field(default=DEFAULT_ITERATION_LIMIT, gt=0)
    status: ExecutionStatus = ExecutionStatus.RUNNING
    final_answer: str | None = None

    @model_validator(mode="after")
    def _check_consistency(self) -> "AgentState":
        if self.iteration > self.iteration_limit:
            raise ValueError(
                f"iteration {self.iteration} exceeds iteration_limit {self.iteration_limit}"
            )
        if self.final_answer is not None and self.status is not ExecutionStatus.DONE:
            raise ValueError("final_answer is only set on a done state")
        return self

    @classmethod
    def new(cls, query: str, iteration_limit: int = DEFAULT_ITERATION_LIMIT) -> "AgentState":
        return cls(query=query, iteration_limit=iteration_limit)

    @property
    def is_terminal(self) -> bool:
        return self.status is not ExecutionStatus.RUNNING

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_json(cls, payload: str) -> "AgentState":
        try:
            return cls.model_validate_json(payload)
        except ValidationError as exc:
            raise WireFormatError(f"Invalid state JSON: {exc}") from exc
