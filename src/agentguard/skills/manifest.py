"""SKILL.md manifests: YAML frontmatter plus a free-form body."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable
from xml.sax.saxutils import escape

from agentguard.errors import AgentGuardError
from agentguard.util.logging import get_logger

MANIFEST_FILENAME = "SKILL.md"
DELIMITER = "---"

logger = get_logger("agentguard.skills.manifest")


class ManifestError(AgentGuardError, ValueError):
    """Raised when a skill manifest cannot be parsed."""


def _import_yaml():
    try:
        import yaml  # type: ignore
    except ImportError as exc:  # pragma: no cover - exercised in integration
        raise ManifestError("Install agentguard[yaml] to read SKILL.md manifests.") from exc
    return yaml


def _optional_str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None or isinstance(value, str):
        return value
    raise ManifestError(f"invalid frontmatter: '{key}' must be a string")


@dataclass(frozen=True)
class SkillFrontmatter:
    name: str
    description: str
    license: str | None = None
    compatibility: str | None = None
    metadata: dict[str, Any] | None = None
    allowed_tools: str | None = None

    @classmethod
    def from_mapping(cls, data: Any) -> "SkillFrontmatter":
        if not isinstance(data, dict):
            raise ManifestError("invalid frontmatter: expected a mapping")
        for key in ("name", "description"):
            if not isinstance(data.get(key), str):
                raise ManifestError(f"invalid frontmatter: missing '{key}'")
        metadata = data.get("metadata")
        if metadata is not None and not isinstance(metadata, dict):
            raise ManifestError("invalid frontmatter: 'metadata' must be a mapping")
        return cls(
            name=data["name"],
            description=data["description"],
            license=_optional_str(data, "license"),
            compatibility=_optional_str(data, "compatibility"),
            metadata=metadata,
            allowed_tools=_optional_str(data, "allowed-tools"),
        )


@dataclass(frozen=True)
class SkillManifest:
    frontmatter: SkillFrontmatter
    body: str


@dataclass(frozen=True)
class DiscoveredSkill:
    path: Path
    manifest: SkillManifest


def parse_skill_manifest(markdown: str) -> SkillManifest:
    lines = markdown.splitlines()
    if not lines:
        raise ManifestError("frontmatter not found")
    if lines[0].strip() != DELIMITER:
        raise ManifestError(f"missing frontmatter delimiter '{DELIMITER}'")
    try:
        closing = next(
            idx for idx, line in enumerate(lines[1:], start=1) if line.strip() == DELIMITER
        )
    except StopIteration:
        raise ManifestError("frontmatter not found") from None
    yaml = _import_yaml()
    try:
        data = yaml.safe_load("\n".join(lines[1:closing]))
    except yaml.YAMLError as exc:
        raise ManifestError(f"failed to parse frontmatter: {exc}") from exc
    return SkillManifest(
        frontmatter=SkillFrontmatter.from_mapping(data),
        body="\n".join(lines[closing + 1 :]),
    )


def load_skill_manifest(path: Path) -> SkillManifest:
    return parse_skill_manifest(path.read_text(encoding="utf-8"))


def discover_skills(skill_dirs: Iterable[Path]) -> list[DiscoveredSkill]:
    """Scan each directory's immediate children for SKILL.md files."""
    found: list[DiscoveredSkill] = []
    for directory in skill_dirs:
        if not directory.is_dir():
            continue
        for child in sorted(directory.iterdir()):
            manifest_path = child / MANIFEST_FILENAME
            if not manifest_path.is_file():
                continue
            try:
                manifest = load_skill_manifest(manifest_path)
            except ManifestError as exc:
                logger.warning("skills.discover skipped=%s error=%s", manifest_path, exc)
                continue
            found.append(DiscoveredSkill(path=manifest_path, manifest=manifest))
    return found


def available_skills_prompt(skills: Iterable[DiscoveredSkill]) -> str:
    parts = ["<available_skills>"]
    for skill in skills:
        parts.extend(
            [
                "<skill>",
                f"<name>\n{escape(skill.manifest.frontmatter.name)}\n</name>",
                f"<description>\n{escape(skill.manifest.frontmatter.description)}\n</description>",
                f"<location>\n{escape(str(skill.path))}\n</location>",
                "</skill>",
            ]
        )
    parts.append("</available_skills>")
    return "\n".join(parts)
