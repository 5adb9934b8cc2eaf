import logging
import re

from app.agents.base import CreativeStage, StageResult
from app.core.logic_config import LogicConfig, logic_config
from app.schemas.cards import LayerType
from app.schemas.workflow import WorkflowState, WorkflowStep

logger = logging.getLogger(__name__)


class EditorStage(CreativeStage):
    """Tidies text layers and applies the tone's typeface."""

    name = "editor"
    step = WorkflowStep.EDITING

    def __init__(self, config: LogicConfig = logic_config):
        self.tone_fonts = config.workflow.tone_fonts

    async def run(self, state: WorkflowState) -> StageResult:
        if state.layer_tree is None:
            return StageResult.failed("Text refinement skipped: no layer tree to edit")

        tone = state.analysis.tone.value if state.analysis else "celebratory"
        logger.info(f"Refining text layers for tone: {tone}")

        tree = state.layer_tree.model_copy(deep=True)
        font = self.tone_fonts.get(tone)
        for node in tree.walk():
            if node.type != LayerType.TEXT or node.content is None:
                continue
            node.content = re.sub(r"\s+", " ", node.content).strip()
            if font:
                node.style["fontFamily"] = font
        return StageResult.ok(layer_tree=tree)
