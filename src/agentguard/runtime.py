"""Reference host driver around the decision engine.

The loop owns everything the engine deliberately does not: prompts, the
conversation transcript, calling the text backend and the capability
executor, and the single corrective retry. The engine itself only ever sees
``(state, text)``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable
from uuid import uuid4

from agentguard.capability import CapabilityResult
from agentguard.config import Settings
from agentguard.engine import advance
from agentguard.errors import CorrectionExhausted
from agentguard.failures import FailureEvent, FailureTag, contract_failure_tag
from agentguard.guardrail import GuardrailChain, GuardrailContext, ValidationOutcome
from agentguard.models.base import TextBackend
from agentguard.protocol import Done, Inconclusive, InvokeSkill, InvokeTool, decision_to_wire
from agentguard.retry import run_with_correction
from agentguard.skills.errors import SkillError
from agentguard.skills.extraction import (
    EXTRACTION_SKILL,
    CandidateSource,
    ExtractionRequest,
    ExtractionResult,
    ExtractionSkill,
    ModelCandidates,
)
from agentguard.state import AgentState
from agentguard.trace import TraceRecorder
from agentguard.util.logging import get_logger, preview

Executor = Callable[[InvokeTool], CapabilityResult]

SYSTEM_PROMPT = """You are a helpful AI agent with access to tools and skills.

Available tools:
{tools}

Available skills:
- extract: {{"skill": "extract", "text": "<source text>", "target": "email|url|date|entity|name"}}
{skills}
To invoke a tool, respond with JSON in this exact format:
{{"tool": "<name>", ...parameters}}

IMPORTANT:
- Only output JSON when you want to invoke a tool or a skill
- For final answers, respond in plain text (no JSON)
- Be concise and helpful"""

TOOL_RESPONSE_SCHEMA = """When responding after tool usage:
- First provide an OBSERVATIONS section containing factual information derived directly from tool output.
- Then provide a FINAL ANSWER section that directly answers the user request.

Both sections are required."""

CORRECTIVE_INSTRUCTIONS = """CRITICAL: You MUST call a tool to complete this task.
Respond ONLY with valid JSON in the exact format shown above.
Do NOT explain what you will do. Do NOT use plain text. Output JSON only.

IMPORTANT: The tool command must directly produce the final answer.
Avoid commands that output headers, summaries, or non-answer lines.
The tool output should be the actual data requested, not metadata about it."""



def _new_trace() -> TraceRecorder:
    return TraceRecorder(trace_id=f"run-{uuid4().hex[:8]}")

@dataclass
class RunResult:
    state: AgentState
    answer: str | None = None
    failure: FailureEvent | None = None
    capabilities_used: list[str] = field(default_factory=list)
    trace_path: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.answer is not None


class AgentLoop:
    def __init__(
        self,
        backend: TextBackend,
        executor: Executor,
        settings: Settings | None = None,
        guardrails: GuardrailChain | None = None,
        tools: dict[str, str] | None = None,
        skills_prompt: str = "",
        extraction_source: Callable[[bool], CandidateSource] | None = None,
        trace: TraceRecorder | None = None,
    ) -> None:
        self.backend = backend
        self.executor = executor
        self.settings = settings or Settings()
        self.guardrails = guardrails if guardrails is not None else GuardrailChain.default()
        self.tools = tools or {}
        self.skills_prompt = skills_prompt
        self.extraction_source = extraction_source or (
            lambda corrective: ModelCandidates(self.backend, corrective=corrective)
        )
        self.trace = trace or _new_trace()
        self._trace_used = False
        self.logger = get_logger("agentguard.runtime")
        self._transcript: list[str] = []
        self._tool_used = False

    def build_prompt(self, state: AgentState, corrective: bool) -> str:
        tools = "\n".join(
            f"- {name}: {description}" for name, description in sorted(self.tools.items())
        )
        skills = f"{self.skills_prompt}\n" if self.skills_prompt else ""
        sections = [
            SYSTEM_PROMPT.format(tools=tools or "- none", skills=skills),
            f"User: {state.query}",
            *self._transcript,
        ]
        if self._tool_used:
            sections.append(TOOL_RESPONSE_SCHEMA)
        if corrective:
            sections.append(CORRECTIVE_INSTRUCTIONS)
        sections.append("Assistant: ")
        return "\n\n".join(sections)

    def run(self, query: str) -> RunResult:
        if self._trace_used:
            self.trace = _new_trace()
        self._trace_used = True
        self._transcript = []
        self._tool_used = False
        state = AgentState.new(query, self.settings.iteration_limit)
        result = RunResult(state=state)
        corrective = False
        pending_rejection: str | None = None

        while not state.is_terminal:
            output = self.backend.generate(self.build_prompt(state, corrective))
            step = advance(state, output, detect_planning=self.settings.detect_planning_prose)
            state = result.state = step.state
            decision = step.decision
            self.trace.record_step(output, decision_to_wire(decision), state.to_json())

            if isinstance(decision, Done):
                result.answer = decision.answer
                return self._finish(result)
            if isinstance(decision, Inconclusive):
                if state.is_terminal:
                    return self._fail(
                        result, FailureTag.BUDGET_EXHAUSTED, "iteration limit reached"
                    )
                if pending_rejection is not None:
                    return self._fail(
                        result,
                        FailureTag.GUARDRAIL_REJECTED,
                        f"model could not recover from rejection: {pending_rejection}",
                        {"model_output": preview(output)},
                    )
                if corrective:
                    return self._fail(
                        result,
                        FailureTag.PARSE_AMBIGUITY,
                        "model did not invoke a capability or answer after retry",
                        {"model_output": preview(output)},
                    )
                self.logger.info("runtime.inconclusive retry=corrective")
                corrective = True
                continue
            if isinstance(decision, InvokeTool):
                self._transcript.append(f"Assistant: {output}")
                capability = self.executor(decision)
                result.capabilities_used.append(decision.name)
                outcome = self.guardrails.validate(
                    GuardrailContext(result=capability, capability=decision.name, query=query)
                )
                self.trace.record_capability(
                    decision.name,
                    "error" if not capability.success else ("accepted" if outcome.accept else "rejected"),
                    capability.output,
                    capability.error or outcome.reason,
                )
                if not capability.success:
                    return self._fail(result, FailureTag.CAPABILITY_ERROR, capability.error or "")
                if not outcome.accept:
                    reason = outcome.reason or ""
                    if pending_rejection is not None:
                        exhausted = CorrectionExhausted(pending_rejection, reason)
                        return self._fail(result, FailureTag.GUARDRAIL_REJECTED, str(exhausted))
                    self.logger.info("runtime.rejected tool=%s reason=%s", decision.name, reason)
                    self._transcript.append(f"Tool output rejected: {reason}")
                    pending_rejection = reason
                    corrective = True
                    continue
                self._transcript.append(f"Tool output:\n{capability.output}")
                self._tool_used = True
            elif isinstance(decision, InvokeSkill):
                self._transcript.append(f"Assistant: {output}")
                result.capabilities_used.append(decision.name)
                if decision.name != EXTRACTION_SKILL.name:
                    return self._fail(
                        result, FailureTag.CAPABILITY_ERROR, f"Unknown skill: {decision.name}"
                    )
                try:
                    extracted = self._run_extraction(decision)
                except SkillError as exc:
                    return self._fail(result, contract_failure_tag(exc.code), exc.reason)
                except CorrectionExhausted as exc:
                    return self._fail(result, FailureTag.CONTRACT_VIOLATION, str(exc))
                self._transcript.append(f"Skill output:\n{extracted.to_json()}")
                self._tool_used = True
            else:
                raise TypeError(f"unknown decision: {decision!r}")
            pending_rejection = None
            corrective = False

        return self._fail(result, FailureTag.BUDGET_EXHAUSTED, "iteration limit reached")

    def _run_extraction(self, decision: InvokeSkill) -> ExtractionResult:
        request = ExtractionRequest.from_params(decision.params)

        def attempt(corrective: bool) -> ExtractionResult | SkillError:
            skill = ExtractionSkill(self.extraction_source(corrective))
            try:
                return skill.run_request(request)
            except SkillError as exc:
                if not exc.retryable:
                    raise
                return exc

        def check(value: ExtractionResult | SkillError) -> ValidationOutcome:
            if isinstance(value, SkillError):
                return ValidationOutcome.rejected(value.reason)
            return ValidationOutcome.accepted()

        return run_with_correction(attempt, check)

    def _fail(
        self, result: RunResult, tag: str, reason: str, details: dict | None = None
    ) -> RunResult:
        tag_value = tag.value if isinstance(tag, FailureTag) else tag
        result.failure = FailureEvent(tag=tag_value, reason=reason, details=details)
        self.logger.info("runtime.failed tag=%s reason=%s", tag_value, reason)
        return self._finish(result)

    def _finish(self, result: RunResult) -> RunResult:
        if self.settings.trace_dir:
            result.trace_path = self.trace.finalize(
                self.settings.trace_dir,
                {
                    "iterations": result.state.iteration,
                    "status": result.state.status.value,
                    "capabilities": result.capabilities_used,
                },
            )
        return result
