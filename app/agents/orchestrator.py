"""
Card generation workflow.

The orchestrator folds a ``WorkflowState`` through an ordered list of
creative stages: analysis, illustration, editing, animation and (for
signed-in users) shopping.

Failure policy: a failed stage is soft and only adds a warning while a
usable layer tree exists. When there is no tree yet the run aborts with
``current_step = failed``. Unexpected exceptions and the overall timeout
abort the run too; whatever state was accumulated is still returned, so
callers must look at ``current_step`` / ``errors`` rather than HTTP status.

Analysis is bounded by the generation timeout and falls back instead of
failing, so it runs outside the workflow budget.
"""
import asyncio
import logging
import time
from typing import Dict, List, Optional, Sequence

from app.agents.analyst import AnalystStage
from app.agents.animator import AnimatorStage
from app.agents.base import CreativeStage
from app.agents.editor import EditorStage
from app.agents.gift import GiftStage
from app.agents.illustrator import IllustratorStage
from app.services.content_generation import ContentGenerationService
from app.services.gift_cards.service import GiftCardService
from app.schemas.workflow import WorkflowState, WorkflowStep

logger = logging.getLogger(__name__)


class WorkflowOrchestrator:
    def __init__(self, stages: Sequence[CreativeStage], timeout_seconds: Optional[float] = None):
        self.stages: List[CreativeStage] = list(stages)
        self.timeout_seconds = timeout_seconds

    @classmethod
    def default(
        cls,
        content_service: ContentGenerationService,
        gift_card_service: GiftCardService,
        timeout_seconds: Optional[float] = None,
    ) -> "WorkflowOrchestrator":
        return cls(
            [
                AnalystStage(content_service),
                IllustratorStage(),
                EditorStage(),
                AnimatorStage(),
                GiftStage(gift_card_service),
            ],
            timeout_seconds=timeout_seconds,
        )

    async def run_workflow(
        self,
        prompt: str,
        user_id: Optional[str] = None,
        madlib_input: Optional[Dict[str, str]] = None,
    ) -> WorkflowState:
        state = WorkflowState(prompt=prompt, user_id=user_id, madlib_input=madlib_input)
        started = time.perf_counter()
        logger.info("Starting card generation workflow...")

        try:
            await self._run_stages(state)
        except asyncio.TimeoutError:
            logger.error(f"Workflow timed out after {self.timeout_seconds}s at step '{state.current_step.value}'")
            state.fail(f"Workflow timed out after {self.timeout_seconds}s")
        except Exception as e:
            logger.exception("Orchestration error")
            state.fail(str(e) or e.__class__.__name__)

        state.duration_ms = int((time.perf_counter() - started) * 1000)
        if state.current_step == WorkflowStep.COMPLETE:
            logger.info(f"Card generation complete in {state.duration_ms / 1000:.2f}s")
        return state

    async def _run_stages(self, state: WorkflowState) -> None:
        loop = asyncio.get_running_loop()
        deadline = None
        for stage in self.stages:
            if not stage.should_run(state):
                logger.debug(f"Skipping stage '{stage.name}'")
                continue

            state.enter(stage.step)
            if self.timeout_seconds is None or not stage.counts_toward_timeout:
                result = await stage.run(state)
            else:
                # The budget starts with the first stage that counts toward it
                if deadline is None:
                    deadline = loop.time() + self.timeout_seconds
                result = await asyncio.wait_for(stage.run(state), timeout=max(deadline - loop.time(), 0))

            if result.success:
                for field, value in result.updates.items():
                    setattr(state, field, value)
                continue

            message = result.error or f"{stage.name} stage failed"
            if state.layer_tree is None:
                logger.error(f"Stage '{stage.name}' failed with no usable design, aborting: {message}")
                state.fail(message)
                return

            logger.warning(f"Stage '{stage.name}' failed, keeping previous design: {message}")
            state.warnings.append(message)

        state.enter(WorkflowStep.COMPLETE)

    def get_status(self) -> dict:
        return {
            "status": "healthy",
            "agents": {
                "orchestration": "active",
                **{stage.name: stage.get_status() for stage in self.stages},
            },
        }
