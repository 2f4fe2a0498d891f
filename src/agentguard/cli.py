"""Command-line interface.

Exit codes follow the response categories: 0 accepted, 1 error, 2 rejected.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Sequence

from pydantic import ValidationError

from agentguard.capability import EXIT_CODES, ResultCategory
from agentguard.config import Settings
from agentguard.errors import AgentGuardError, TerminalStateError, WireFormatError
from agentguard.factory import build_extraction_skill
from agentguard.guardrail import validate_output
from agentguard.models.base import BackendError
from agentguard.skills.errors import SkillError
from agentguard.skills.extraction import ExtractionRequest, validate_extraction_output
from agentguard.skills.manifest import discover_skills
from agentguard.util.logging import set_level
from agentguard.wire import create_state, run_step


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="agentguard", description="agentguard decision engine")
    parser.add_argument("--log-level", dest="log_level")
    commands = parser.add_subparsers(dest="command", required=True)

    new_state = commands.add_parser("new-state", help="Create a serialized state for a query")
    new_state.add_argument("query", type=str)
    new_state.add_argument("--limit", type=int, dest="iteration_limit")

    step = commands.add_parser("step", help="Advance a StepInput document read from stdin")
    step.add_argument("--detect-planning", action="store_true", dest="detect_planning")

    guard = commands.add_parser("guard", help="Check capability output read from stdin")
    guard.add_argument("--file", dest="file")

    extract = commands.add_parser("extract", help="Run or check the extraction skill")
    extract.add_argument("--target", required=True)
    extract.add_argument("--text", help="Source text (defaults to stdin)")
    extract.add_argument("--candidate", help="Validate this candidate JSON instead of extracting")
    extract.add_argument("--model", action="store_true", dest="use_model")

    skills = commands.add_parser("skills", help="List skills found in SKILL.md directories")
    skills.add_argument("dirs", nargs="*")
    return parser


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    data: dict[str, Any] = settings.model_dump()
    if getattr(args, "log_level", None):
        data["log_level"] = args.log_level
    if getattr(args, "iteration_limit", None) is not None:
        data["iteration_limit"] = args.iteration_limit
    if getattr(args, "detect_planning", False):
        data["detect_planning_prose"] = True
    return Settings(**data)


def _emit(payload: dict[str, Any]) -> None:
    print(json.dumps(payload, ensure_ascii=False))


def _reject(reason: str) -> int:
    _emit({"category": ResultCategory.REJECTED.value, "reason": reason})
    return EXIT_CODES[ResultCategory.REJECTED]


def _error(message: str) -> int:
    print(f"error: {message}", file=sys.stderr)
    return EXIT_CODES[ResultCategory.ERROR]


def cmd_new_state(args: argparse.Namespace, settings: Settings) -> int:
    print(create_state(args.query, settings.iteration_limit))
    return EXIT_CODES[ResultCategory.ACCEPTED]


def cmd_step(args: argparse.Namespace, settings: Settings) -> int:
    try:
        output = run_step(sys.stdin.read(), detect_planning=settings.detect_planning_prose)
    except (WireFormatError, TerminalStateError) as exc:
        return _error(str(exc))
    print(output)
    return EXIT_CODES[ResultCategory.ACCEPTED]


def cmd_guard(args: argparse.Namespace, settings: Settings) -> int:
    text = Path(args.file).read_text(encoding="utf-8") if args.file else sys.stdin.read()
    outcome = validate_output(text)
    if not outcome.accept:
        return _reject(outcome.reason or "")
    _emit({"category": ResultCategory.ACCEPTED.value})
    return EXIT_CODES[ResultCategory.ACCEPTED]


def cmd_extract(args: argparse.Namespace, settings: Settings) -> int:
    text = args.text if args.text is not None else sys.stdin.read()
    try:
        if args.candidate is not None:
            request = ExtractionRequest.create(text, args.target)
            result = validate_extraction_output(request, args.candidate)
        else:
            skill = build_extraction_skill(settings, use_model=args.use_model)
            result = skill.run(text, args.target)
    except SkillError as exc:
        return _reject(exc.reason)
    except BackendError as exc:
        return _error(str(exc))
    _emit({"category": ResultCategory.ACCEPTED.value, "result": result.to_dict()})
    return EXIT_CODES[ResultCategory.ACCEPTED]


def cmd_skills(args: argparse.Namespace, settings: Settings) -> int:
    dirs = [Path(entry) for entry in args.dirs] or settings.skill_paths()
    try:
        found = discover_skills(dirs)
    except AgentGuardError as exc:
        return _error(str(exc))
    for skill in found:
        print(f"{skill.manifest.frontmatter.name}\t{skill.manifest.frontmatter.description}")
    return EXIT_CODES[ResultCategory.ACCEPTED]


COMMANDS = {
    "new-state": cmd_new_state,
    "step": cmd_step,
    "guard": cmd_guard,
    "extract": cmd_extract,
    "skills": cmd_skills,
}


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = apply_overrides(Settings(), args)
    except ValidationError as exc:
        return _error(f"invalid settings: {exc}")
    set_level(settings.log_level)
    return COMMANDS[args.command](args, settings)


if __name__ == "__main__":
    raise SystemExit(main())
