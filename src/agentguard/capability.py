"""Results of capability execution and how hosts should report them."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, model_validator


class CapabilityResult(BaseModel):
    """What a host executor reports back after running a tool or skill."""

    model_config = ConfigDict(frozen=True)

    success: bool
    output: str = ""
    error: str | None = None

    @model_validator(mode="after")
    def _failure_needs_error(self) -> "CapabilityResult":
        if not self.success and not (self.error and self.error.strip()):
            raise ValueError("a failed capability result must carry a non-empty error")
        return self

    @classmethod
    def ok(cls, output: str) -> "CapabilityResult":
        return cls(success=True, output=output)

    @classmethod
    def failure(cls, error: str) -> "CapabilityResult":
        return cls(success=False, output="", error=error)


class ResultCategory(str, Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    ERROR = "error"


EXIT_CODES = {
    ResultCategory.ACCEPTED: 0,
    ResultCategory.ERROR: 1,
    ResultCategory.REJECTED: 2,
}

HTTP_STATUSES = {
    ResultCategory.ACCEPTED: 200,
    ResultCategory.REJECTED: 422,
    ResultCategory.ERROR: 502,
}
