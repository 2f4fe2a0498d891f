"""Scripted backend for offline runs and tests."""

from __future__ import annotations

from agentguard.models.base import BackendError, TextBackend


class ScriptedBackend(TextBackend):
    """Replays canned outputs in order and records every prompt it was given."""

    def __init__(self, outputs: list[str] | None = None) -> None:
        self._outputs = list(outputs or [])
        self.prompts: list[str] = []

    @property
    def calls(self) -> int:
        return len(self.prompts)

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self._outputs:
            raise BackendError("scripted backend has no outputs left")
        return self._outputs.pop(0)
