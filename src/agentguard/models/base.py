"""Text-generation boundary."""

from __future__ import annotations

from abc import ABC, abstractmethod


class BackendError(RuntimeError):
    """Raised when a text backend cannot produce output."""


class TextBackend(ABC):
    """Produces raw text for a prompt. Everything behind it is external."""

    @abstractmethod
    def generate(self, prompt: str) -> str:
        """Return the model's raw text for ``prompt``."""
        raise NotImplementedError
