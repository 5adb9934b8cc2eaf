import logging

from app.agents.base import CreativeStage, StageResult
from app.core.logic_config import LogicConfig, logic_config
from app.schemas.workflow import WorkflowState, WorkflowStep

logger = logging.getLogger(__name__)

STAGGER_MS = 150


class AnimatorStage(CreativeStage):
    name = "animator"
    step = WorkflowStep.ANIMATING

    def __init__(self, config: LogicConfig = logic_config):
        self.style_animations = config.workflow.style_animations

    async def run(self, state: WorkflowState) -> StageResult:
        if state.layer_tree is None:
            return StageResult.failed("Animation skipped: no layer tree")

        style = state.analysis.illustration_style.value if state.analysis else "cartoon"
        animation = self.style_animations.get(style, "fade-in")
        logger.info(f"Adding '{animation}' animations for style: {style}")

        tree = state.layer_tree.model_copy(deep=True)
        for index, node in enumerate(n for n in tree.walk() if n.id != tree.id):
            node.style["animation"] = animation
            node.style["animationDelay"] = f"{index * STAGGER_MS}ms"
        return StageResult.ok(layer_tree=tree)
