from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field

from app.schemas.cards import LayerTree, PromptAnalysis


class WorkflowStep(str, Enum):
    START = "start"
    ANALYZING = "analyzing"
    ILLUSTRATING = "illustrating"
    EDITING = "editing"
    ANIMATING = "animating"
    SHOPPING = "shopping"
    COMPLETE = "complete"
    FAILED = "failed"


TERMINAL_STEPS = frozenset({WorkflowStep.COMPLETE, WorkflowStep.FAILED})


class GiftRecommendation(BaseModel):
    merchant: str
    merchant_id: str
    amount: float
    reason: str
    relevance: float = Field(..., ge=0, le=1)


class SuggestedFriend(BaseModel):
    name: str
    phone: str
    relationship: str
    reason: str
    likelihood: Literal["high", "medium", "low"]


class WorkflowState(BaseModel):
    """Accumulating record threaded through one card-generation request."""

    prompt: str
    madlib_input: Optional[dict[str, str]] = None
    user_id: Optional[str] = None

    analysis: Optional[PromptAnalysis] = None
    analysis_source: Optional[Literal["parsed", "fallback"]] = None

    layer_tree: Optional[LayerTree] = None
    variations: list[LayerTree] = Field(default_factory=list)

    gift_recommendations: Optional[list[GiftRecommendation]] = None
    suggested_friends: Optional[list[SuggestedFriend]] = None

    current_step: WorkflowStep = WorkflowStep.START
    step_history: list[WorkflowStep] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    duration_ms: Optional[int] = None

    @property
    def is_finished(self) -> bool:
        return self.current_step in TERMINAL_STEPS

    def enter(self, step: WorkflowStep) -> None:
        if self.is_finished:
            raise RuntimeError(f"Workflow already finished with '{self.current_step.value}'")
        self.current_step = step
        self.step_history.append(step)

    def fail(self, message: str) -> None:
        self.errors.append(message)
        self.current_step = WorkflowStep.FAILED
        self.step_history.append(WorkflowStep.FAILED)


class WorkflowRequest(BaseModel):
    prompt: str = Field(..., min_length=1, max_length=2000)
    user_id: Optional[str] = None
    madlib_input: Optional[dict[str, str]] = None
