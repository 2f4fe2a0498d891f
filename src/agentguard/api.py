"""FastAPI service: a stateless request handler around the engine.

Nothing survives between requests; every call carries its serialized state.
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from agentguard.capability import HTTP_STATUSES, CapabilityResult, ResultCategory
from agentguard.config import Settings
from agentguard.errors import TerminalStateError, WireFormatError
from agentguard.factory import build_extraction_skill
from agentguard.guardrail import GuardrailChain, GuardrailContext, categorize_result
from agentguard.models.base import BackendError
from agentguard.skills.errors import SkillError
from agentguard.skills.extraction import ExtractionRequest, validate_extraction_output
from agentguard.util.logging import get_logger
from agentguard.wire import StepInput, StepOutput, create_state, step

app = FastAPI(title="agentguard")
logger = get_logger("agentguard.api")


class StateRequest(BaseModel):
    query: str
    iteration_limit: int | None = Field(default=None, gt=0)


class StateResponse(BaseModel):
    serialized_state: str


class GuardRequest(BaseModel):
    result: CapabilityResult
    capability: str = ""


class ExtractRequest(BaseModel):
    text: str
    target: str
    use_model: bool = False


class ExtractValidateRequest(BaseModel):
    text: str
    target: str
    candidate: str


def _respond(category: ResultCategory, body: dict[str, Any]) -> JSONResponse:
    return JSONResponse(
        status_code=HTTP_STATUSES[category], content={"category": category.value, **body}
    )


@app.post("/state", response_model=StateResponse)
async def new_state(request: StateRequest) -> StateResponse:
    settings = Settings()
    limit = request.iteration_limit or settings.iteration_limit
    return StateResponse(serialized_state=create_state(request.query, limit))


@app.post("/step", response_model=StepOutput)
async def advance_step(request: StepInput) -> StepOutput:
    settings = Settings()
    try:
        return step(request, detect_planning=settings.detect_planning_prose)
    except (WireFormatError, TerminalStateError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.post("/guard")
async def guard(request: GuardRequest) -> JSONResponse:
    outcome = GuardrailChain.default().validate(
        GuardrailContext(result=request.result, capability=request.capability)
    )
    category, reason = categorize_result(request.result, outcome)
    logger.info("api.guard capability=%s category=%s", request.capability, category.value)
    if reason is not None:
        return _respond(category, {"reason": reason})
    return _respond(category, {"output": request.result.output})


def _skill_rejection(exc: SkillError) -> JSONResponse:
    logger.info("api.extract rejected code=%s", exc.code)
    return _respond(ResultCategory.REJECTED, {"code": exc.code, "reason": exc.reason})


@app.post("/skills/extract/validate")
async def validate_extraction(request: ExtractValidateRequest) -> JSONResponse:
    try:
        extraction = ExtractionRequest.create(request.text, request.target)
        result = validate_extraction_output(extraction, request.candidate)
    except SkillError as exc:
        return _skill_rejection(exc)
    return _respond(ResultCategory.ACCEPTED, {"result": result.to_dict()})


@app.post("/skills/extract")
async def extract(request: ExtractRequest) -> JSONResponse:
    settings = Settings()
    try:
        result = build_extraction_skill(settings, use_model=request.use_model).run(
            request.text, request.target
        )
    except SkillError as exc:
        return _skill_rejection(exc)
    except BackendError as exc:
        return _respond(ResultCategory.ERROR, {"reason": str(exc)})
    return _respond(ResultCategory.ACCEPTED, {"result": result.to_dict()})
