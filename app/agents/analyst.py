import logging

from app.agents.base import CreativeStage, StageResult
from app.schemas.workflow import WorkflowState, WorkflowStep
from app.services.content_generation import ContentGenerationService

logger = logging.getLogger(__name__)


class AnalystStage(CreativeStage):
    """Classifies the prompt. Never fails: the content service substitutes a default analysis."""

    name = "analyst"
    step = WorkflowStep.ANALYZING
    counts_toward_timeout = False

    def __init__(self, content_service: ContentGenerationService):
        self.content_service = content_service

    async def run(self, state: WorkflowState) -> StageResult:
        result = await self.content_service.analyze_prompt(state.prompt)
        analysis = result.value
        logger.info(
            f"Analysis complete: {analysis.occasion} card, {analysis.illustration_style.value} style "
            f"(source={result.source})"
        )
        return StageResult.ok(analysis=analysis, analysis_source=result.source)

    def get_status(self) -> str:
        return "active" if self.content_service.is_configured else "degraded"
