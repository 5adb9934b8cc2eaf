import logging
from typing import Dict, List

from app.agents.base import CreativeStage, StageResult
from app.schemas.cards import IllustrationStyle, LayerTree, LayerType, PromptAnalysis
from app.schemas.workflow import WorkflowState, WorkflowStep

logger = logging.getLogger(__name__)

# (background, text color) pairs; the first palette of each style is the primary design
PALETTES: Dict[IllustrationStyle, List[tuple]] = {
    IllustrationStyle.ANIME: [("#fde2f3", "#5b2a86"), ("#e0f4ff", "#1d3557"), ("#fff4d6", "#9c4221")],
    IllustrationStyle.WATERCOLOR: [("#f0f8ff", "#2f4858"), ("#fef6e4", "#8d5a97"), ("#eaf4e8", "#33658a")],
    IllustrationStyle.LINEART: [("#ffffff", "#222222"), ("#f7f7f2", "#3d405b"), ("#fafafa", "#6d597a")],
    IllustrationStyle.OILPAINTING: [("#f4e9d8", "#5c3d2e"), ("#e8dcc4", "#2e4053"), ("#f2e3c6", "#7b2d26")],
    IllustrationStyle.CARTOON: [("#f0f8ff", "#333333"), ("#fff3b0", "#e76f51"), ("#d8f3dc", "#1b4332")],
}


class IllustratorStage(CreativeStage):
    """Lays out the card composition. Artwork itself is a placeholder image layer for now."""

    name = "illustrator"
    step = WorkflowStep.ILLUSTRATING

    async def run(self, state: WorkflowState) -> StageResult:
        analysis = state.analysis
        if analysis is None:
            return StageResult.failed("Illustration generation failed: prompt was not analyzed")

        logger.info(f"Generating illustration for: {analysis.occasion}")
        variations = [
            self.build_layer_tree(analysis, state.prompt, background, text_color)
            for background, text_color in PALETTES[analysis.illustration_style]
        ]
        logger.info(f"Illustration complete: {len(variations)} variations generated")
        return StageResult.ok(layer_tree=variations[0], variations=variations)

    @staticmethod
    def build_layer_tree(analysis: PromptAnalysis, prompt: str, background: str, text_color: str) -> LayerTree:
        children = [
            LayerTree(id="background", type=LayerType.SHAPE, style={"backgroundColor": background}),
            LayerTree(
                id="artwork",
                type=LayerType.IMAGE,
                content=prompt,
                style={"illustrationStyle": analysis.illustration_style.value, "objectFit": "cover"},
            ),
            LayerTree(
                id="main-text",
                type=LayerType.TEXT,
                content=f"Happy {analysis.occasion}!",
                style={"fontSize": "24px", "color": text_color},
            ),
        ]
        if analysis.recipient:
            children.append(
                LayerTree(
                    id="recipient-text",
                    type=LayerType.TEXT,
                    content=f"For {analysis.recipient}",
                    style={"fontSize": "18px", "color": text_color},
                )
            )
        if analysis.interests:
            children.append(
                LayerTree(
                    id="interests-text",
                    type=LayerType.TEXT,
                    content=", ".join(analysis.interests),
                    style={"fontSize": "14px", "color": text_color},
                )
            )
        return LayerTree(id="root", type=LayerType.CONTAINER, children=children)
