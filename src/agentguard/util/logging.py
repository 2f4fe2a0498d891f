"""Logging helpers with secret redaction."""

from __future__ import annotations

import logging
import re
from typing import Iterable

_REDACTIONS = [
    (re.compile(r"Bearer\s+[A-Za-z0-9\-_.]+"), "Bearer [REDACTED]"),
    (re.compile(r"sk-[A-Za-z0-9]+"), "sk-[REDACTED]"),
]

_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def redact(text: str, extra_secrets: Iterable[str] | None = None) -> str:
    """Redact known secret patterns and explicit secrets from text."""
    redacted = text
    for pattern, replacement in _REDACTIONS:
        redacted = pattern.sub(replacement, redacted)
    if extra_secrets:
        for secret in extra_secrets:
            if secret:
                redacted = redacted.replace(secret, "[REDACTED]")
    return redacted


def preview(text: str, limit: int = 80) -> str:
    """First line of redacted text, clipped for log lines."""
    first = redact(text).strip().splitlines()[0] if text.strip() else ""
    if len(first) > limit:
        return first[: limit - 3] + "..."
    return first


def get_logger(name: str) -> logging.Logger:
    """Return a configured logger."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    return logger


def set_level(level: str | int) -> None:
    """Apply a level to every agentguard logger created so far."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    root = logging.getLogger("agentguard")
    root.setLevel(level)
    for name, logger in logging.root.manager.loggerDict.items():
        if name.startswith("agentguard") and isinstance(logger, logging.Logger):
            logger.setLevel(level)
