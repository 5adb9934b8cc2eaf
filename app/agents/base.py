from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from pydantic import BaseModel, Field

from app.schemas.workflow import WorkflowState, WorkflowStep


class StageResult(BaseModel):
    success: bool
    updates: dict[str, Any] = Field(default_factory=dict)
    error: Optional[str] = None

    @classmethod
    def ok(cls, **updates: Any) -> "StageResult":
        return cls(success=True, updates=updates)

    @classmethod
    def failed(cls, error: str) -> "StageResult":
        return cls(success=False, error=error)


class CreativeStage(ABC):
    """
    One step of the card workflow. Stages read the state and report the
    fields they want changed; the orchestrator owns every mutation.
    """

    name: str = "stage"
    step: WorkflowStep
    # False for stages that enforce their own time limit and cannot fail
    counts_toward_timeout: bool = True

    def should_run(self, state: WorkflowState) -> bool:
        return True

    @abstractmethod
    async def run(self, state: WorkflowState) -> StageResult:
        ...

    def get_status(self) -> str:
        return "active"
