import asyncio
from unittest.mock import AsyncMock

import pytest

from app.agents.animator import AnimatorStage
from app.agents.base import CreativeStage, StageResult
from app.agents.editor import EditorStage
from app.agents.gift import GiftStage
from app.agents.illustrator import IllustratorStage
from app.agents.orchestrator import WorkflowOrchestrator
from app.schemas.cards import IllustrationStyle, LayerTree, LayerType, PromptAnalysis, Tone
from app.schemas.gift_cards import GiftCardMerchant
from app.schemas.workflow import WorkflowState, WorkflowStep
from app.services.content_generation import ContentGenerationService
from app.services.llm.interface import LLMResponse

ANALYSIS_JSON = (
    '{"occasion": "birthday", "recipient": "Mia", "age": 7, "interests": ["music"], '
    '"tone": "playful", "illustrationStyle": "watercolor"}'
)


class FailingStage(CreativeStage):
    def __init__(self, name: str, step: WorkflowStep):
        self.name = name
        self.step = step

    async def run(self, state: WorkflowState) -> StageResult:
        return StageResult.failed(f"{self.name} broke")


class ExplodingStage(CreativeStage):
    name = "exploding"
    step = WorkflowStep.EDITING

    async def run(self, state: WorkflowState) -> StageResult:
        raise RuntimeError("unexpected")


class SlowStage(CreativeStage):
    name = "slow"
    step = WorkflowStep.ANIMATING

    async def run(self, state: WorkflowState) -> StageResult:
        await asyncio.sleep(1)
        return StageResult.ok()


@pytest.fixture
def orchestrator(services, llm_client):
    llm_client.generate_text.return_value = LLMResponse(content=ANALYSIS_JSON, model="test-model")
    return services.orchestrator


@pytest.mark.asyncio
async def test_without_user_never_shops(orchestrator):
    state = await orchestrator.run_workflow("Birthday card for Mia")

    assert state.current_step == WorkflowStep.COMPLETE
    assert state.step_history == [
        WorkflowStep.ANALYZING,
        WorkflowStep.ILLUSTRATING,
        WorkflowStep.EDITING,
        WorkflowStep.ANIMATING,
        WorkflowStep.COMPLETE,
    ]
    assert WorkflowStep.SHOPPING not in state.step_history
    assert state.gift_recommendations is None
    assert state.errors == []
    assert state.duration_ms is not None


@pytest.mark.asyncio
async def test_with_user_shopping_follows_animating(orchestrator):
    state = await orchestrator.run_workflow("Birthday card for Mia", user_id="user-1")

    history = state.step_history
    assert history.index(WorkflowStep.SHOPPING) == history.index(WorkflowStep.ANIMATING) + 1
    assert state.current_step == WorkflowStep.COMPLETE
    assert [r.merchant_id for r in state.gift_recommendations] == ["apple", "spotify"]
    assert state.suggested_friends == []


@pytest.mark.asyncio
async def test_final_tree_is_edited_and_animated(orchestrator):
    state = await orchestrator.run_workflow("Birthday card for Mia")

    tree = state.layer_tree
    assert tree.find("main-text").content == "Happy birthday!"
    assert tree.find("main-text").style["fontFamily"] == "Comic Neue"
    assert tree.find("recipient-text").content == "For Mia"
    assert tree.find("interests-text").content == "music"
    assert tree.find("interests-text").style["fontFamily"] == "Comic Neue"
    assert tree.find("artwork").style["animation"] == "fade-in"
    assert tree.find("background").style["animationDelay"] == "0ms"
    assert "animation" not in tree.style
    assert len(state.variations) == 3


@pytest.mark.asyncio
async def test_analysis_fallback_still_completes(services, llm_client):
    llm_client.generate_text.side_effect = RuntimeError("quota exceeded")

    state = await services.orchestrator.run_workflow("Some card")

    assert state.analysis_source == "fallback"
    assert state.analysis == PromptAnalysis()
    assert state.current_step == WorkflowStep.COMPLETE


@pytest.mark.asyncio
async def test_hung_analysis_falls_back_within_equal_timeouts(settings, logic, llm_client, gift_card_service):
    async def hang(*args, **kwargs):
        await asyncio.sleep(5)

    llm_client.generate_text.side_effect = hang
    content = ContentGenerationService(
        llm_client, settings.model_copy(update={"generation_timeout_seconds": 0.2}), logic
    )
    orchestrator = WorkflowOrchestrator.default(content, gift_card_service, timeout_seconds=0.2)

    state = await orchestrator.run_workflow("Birthday card for Mia")

    assert state.current_step == WorkflowStep.COMPLETE
    assert state.analysis_source == "fallback"
    assert state.errors == []


@pytest.mark.asyncio
async def test_illustration_failure_aborts(services, gift_card_service):
    analyst = services.orchestrator.stages[0]
    orchestrator = WorkflowOrchestrator(
        [
            analyst,
            FailingStage("illustrator", WorkflowStep.ILLUSTRATING),
            EditorStage(),
            AnimatorStage(),
            GiftStage(gift_card_service),
        ]
    )

    state = await orchestrator.run_workflow("Birthday card", user_id="user-1")

    assert state.current_step == WorkflowStep.FAILED
    assert state.errors == ["illustrator broke"]
    for step in (WorkflowStep.EDITING, WorkflowStep.ANIMATING, WorkflowStep.SHOPPING):
        assert step not in state.step_history
    assert state.step_history[-1] == WorkflowStep.FAILED


@pytest.mark.asyncio
async def test_editing_failure_keeps_tree(services):
    stages = list(services.orchestrator.stages)
    stages[2] = FailingStage("editor", WorkflowStep.EDITING)

    state = await WorkflowOrchestrator(stages).run_workflow("Birthday card")

    assert state.current_step == WorkflowStep.COMPLETE
    assert state.warnings == ["editor broke"]
    assert state.errors == []
    assert state.layer_tree is not None


@pytest.mark.asyncio
async def test_unexpected_exception_returns_partial_state(services):
    stages = list(services.orchestrator.stages[:2]) + [ExplodingStage()]

    state = await WorkflowOrchestrator(stages).run_workflow("Birthday card")

    assert state.current_step == WorkflowStep.FAILED
    assert state.errors == ["unexpected"]
    assert state.layer_tree is not None


@pytest.mark.asyncio
async def test_timeout_fails_workflow(services):
    stages = list(services.orchestrator.stages[:2]) + [SlowStage()]

    state = await WorkflowOrchestrator(stages, timeout_seconds=0.05).run_workflow("Birthday card")

    assert state.current_step == WorkflowStep.FAILED
    assert "timed out" in state.errors[0]


def test_status_lists_every_stage(services):
    status = services.orchestrator.get_status()

    assert status["status"] == "healthy"
    assert status["agents"]["gift"] == "active"


@pytest.mark.asyncio
async def test_stages_without_tree_report_failure():
    state = WorkflowState(prompt="x")

    assert not (await IllustratorStage().run(state)).success
    assert not (await EditorStage().run(state)).success
    assert not (await AnimatorStage().run(state)).success


def test_layer_tree_only_containers_have_children():
    leaf = LayerTree(id="t", type=LayerType.TEXT, content="hi")

    with pytest.raises(ValueError):
        LayerTree(id="bad", type=LayerType.IMAGE, children=[leaf])


def test_illustrator_omits_recipient_layer_when_unknown():
    analysis = PromptAnalysis(tone=Tone.ELEGANT, illustration_style=IllustrationStyle.LINEART)

    tree = IllustratorStage.build_layer_tree(analysis, "prompt", "#fff", "#000")

    assert tree.find("recipient-text") is None
    assert tree.find("interests-text") is None
    assert [c.id for c in tree.children] == ["background", "artwork", "main-text"]


@pytest.mark.asyncio
async def test_gift_stage_amount_is_clamped_into_merchant_range():
    merchant_service = AsyncMock()
    merchant_service.recommend.return_value = [
        GiftCardMerchant(id="lux", name="Lux", logo_url="x", categories=["jewelry"], min_value=50, max_value=500),
        GiftCardMerchant(id="tiny", name="Tiny", logo_url="x", categories=["music"], min_value=1, max_value=10),
    ]
    state = WorkflowState(prompt="x", user_id="u", analysis=PromptAnalysis(interests=["music", "art"]))

    result = await GiftStage(merchant_service).run(state)

    lux, tiny = result.updates["gift_recommendations"]
    assert lux.amount == 50
    assert lux.relevance == 0.1
    assert tiny.amount == 10
    assert tiny.relevance == 0.5
