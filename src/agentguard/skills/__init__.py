"""Contract-based skills."""

from agentguard.skills.errors import (
    EmptyInput,
    HallucinationDetected,
    InvalidTarget,
    MalformedOutput,
    SchemaViolation,
    SkillError,
)
from agentguard.skills.extraction import (
    EXTRACTION_SKILL,
    ExtractionRequest,
    ExtractionResult,
    ExtractionSkill,
    ExtractionTarget,
    ModelCandidates,
    validate_extraction_output,
)
from agentguard.skills.patterns import PatternCandidates

__all__ = [
    "EXTRACTION_SKILL",
    "EmptyInput",
    "ExtractionRequest",
    "ExtractionResult",
    "ExtractionSkill",
    "ExtractionTarget",
    "HallucinationDetected",
    "InvalidTarget",
    "MalformedOutput",
    "ModelCandidates",
    "PatternCandidates",
    "SchemaViolation",
    "SkillError",
    "validate_extraction_output",
]
