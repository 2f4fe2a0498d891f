"""Shared construction helpers for hosts."""

from __future__ import annotations

from agentguard.config import Settings
from agentguard.models.base import BackendError, TextBackend
from agentguard.models.openai_compat import OpenAICompatBackend
from agentguard.skills.extraction import CandidateSource, ExtractionSkill, ModelCandidates
from agentguard.skills.patterns import PatternCandidates


def build_backend(settings: Settings) -> TextBackend:
    if not settings.openai_api_key:
        raise BackendError("OPENAI_API_KEY is not set")
    return OpenAICompatBackend(
        base_url=settings.openai_base_url,
        api_key=settings.openai_api_key,
        model=settings.openai_model,
        timeout_seconds=settings.openai_timeout_seconds,
    )


def build_candidate_source(settings: Settings, use_model: bool = False) -> CandidateSource:
    if use_model:
        return ModelCandidates(build_backend(settings))
    return PatternCandidates()


def build_extraction_skill(settings: Settings, use_model: bool = False) -> ExtractionSkill:
    return ExtractionSkill(build_candidate_source(settings, use_model=use_model))
