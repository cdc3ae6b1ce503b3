"""
API route definitions for the decision engine.

POST /assess, POST /escalate, POST /enforcement-plan, GET /sources,
PATCH /sources/{name}, PUT /sources/{name}/accuracy. Request bodies are
validated by pydantic (422 on bad input); unknown source or violation type
names map to 404.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from backend_modguard.analysis_engine.models import (
    ActionCategory,
    ConsensusDecision,
    ContentType,
    SourceContext,
)
from backend_modguard.core.exceptions import UnknownSourceError, UnknownViolationTypeError
from backend_modguard.decisions.engine import DecisionEngine
from backend_modguard.modguard_logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["moderation"])

MAX_TEXT_LENGTH = 4000


def get_engine(request: Request) -> DecisionEngine:
    """Dependency: the app-scoped engine created in the lifespan."""
    return request.app.state.engine


# -----------------------------------------------------------------------------
# Request / response models
# -----------------------------------------------------------------------------


class AssessRequest(BaseModel):
    """POST /assess body: one message plus where it was posted."""

    text: str = Field(..., max_length=MAX_TEXT_LENGTH, description="Raw message text")
    author_id: str = Field("unknown", max_length=64, description="Author identifier")
    channel_id: str = Field("unknown", max_length=64, description="Channel identifier")
    channel_name: str | None = Field(None, max_length=100, description="Channel name, used by the classifier")


class DecisionResponse(BaseModel):
    """POST /assess response: the consensus decision."""

    final_score: float = Field(..., ge=0, le=10, description="Adjusted weighted score (0–10)")
    confidence: int = Field(..., ge=0, le=100, description="Decision confidence (0–100)")
    action_category: ActionCategory
    violation_type: str | None = Field(None, description="Violation tag for the action, if any")
    reasoning: list[str] = Field(default_factory=list)
    sources_consulted: int = Field(..., ge=0, description="Number of usable source results")
    consensus_reached: bool
    variance: float = Field(..., ge=0, description="Population variance of source scores")
    per_source_scores: dict[str, dict[str, int]] = Field(default_factory=dict)
    content_type: ContentType
    processing_method: str


class EscalateRequest(BaseModel):
    """POST /escalate body."""

    violation_type: str = Field(..., min_length=1, description="e.g. DISRESPECTFUL, HARASSMENT")
    violation_count: int = Field(..., ge=0, description="Prior violations of this type for the user")


class EscalateResponse(BaseModel):
    action: ActionCategory
    duration_sec: int = Field(..., ge=0, description="0 means no expiry")


class EnforcementPlanRequest(BaseModel):
    """POST /enforcement-plan body: a decision's score and type plus user history."""

    final_score: float = Field(..., ge=0, le=10)
    violation_type: str | None = Field(None)
    violation_count: int = Field(0, ge=0)


class SourceToggleRequest(BaseModel):
    enabled: bool = Field(..., description="Enable or disable the source at runtime")


class AccuracyFeedbackRequest(BaseModel):
    accuracy: float = Field(..., ge=0.0, le=1.0, description="Externally measured accuracy (0–1)")


def _decision_response(decision: ConsensusDecision) -> DecisionResponse:
    return DecisionResponse.model_validate(decision.to_dict())


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------


@router.post("/assess", response_model=DecisionResponse)
async def assess(body: AssessRequest, engine: DecisionEngine = Depends(get_engine)) -> DecisionResponse:
    """Score one message. Always returns a decision, even in total source outage."""
    context = SourceContext(
        author_id=body.author_id,
        channel_id=body.channel_id,
        channel_name=body.channel_name,
    )
    decision = await engine.assess(body.text, context)
    return _decision_response(decision)


@router.post("/escalate", response_model=EscalateResponse)
def escalate(body: EscalateRequest, engine: DecisionEngine = Depends(get_engine)) -> EscalateResponse:
    try:
        rung = engine.escalate(body.violation_type, body.violation_count)
    except UnknownViolationTypeError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return EscalateResponse(action=rung.action, duration_sec=rung.duration_sec)


@router.post("/enforcement-plan")
def enforcement_plan(
    body: EnforcementPlanRequest, engine: DecisionEngine = Depends(get_engine)
) -> dict[str, Any]:
    """
    Apply the violation type's score threshold and escalation ladder.
    Returns enforced=false with action none when the score is below threshold.
    """
    decision = ConsensusDecision(
        final_score=body.final_score,
        confidence=0,
        action_category=ActionCategory.NONE,
        violation_type=body.violation_type,
        reasoning=(),
        sources_consulted=0,
        consensus_reached=False,
        variance=0.0,
        per_source_scores={},
    )
    try:
        plan = engine.plan_enforcement(decision, body.violation_count)
    except UnknownViolationTypeError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return plan.to_dict()


@router.get("/sources")
def list_sources(engine: DecisionEngine = Depends(get_engine)) -> dict[str, Any]:
    """Source table, availability and performance stats."""
    return engine.system_status()


@router.patch("/sources/{name}")
def toggle_source(
    name: str, body: SourceToggleRequest, engine: DecisionEngine = Depends(get_engine)
) -> dict[str, Any]:
    try:
        descriptor = engine.set_source_enabled(name, body.enabled)
    except UnknownSourceError as e:
        raise HTTPException(status_code=404, detail=str(e))
    logger.info("source_toggle_requested", source=name, enabled=body.enabled)
    return descriptor.to_dict()


@router.put("/sources/{name}/accuracy")
def set_source_accuracy(
    name: str, body: AccuracyFeedbackRequest, engine: DecisionEngine = Depends(get_engine)
) -> dict[str, Any]:
    try:
        accuracy = engine.record_feedback(name, body.accuracy)
    except UnknownSourceError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"source": name, "accuracy_score": accuracy}
