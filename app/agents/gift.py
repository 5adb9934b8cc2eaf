import logging
from typing import List

from app.agents.base import CreativeStage, StageResult
from app.schemas.cards import PromptAnalysis
from app.schemas.gift_cards import GiftCardMerchant
from app.schemas.workflow import GiftRecommendation, WorkflowState, WorkflowStep
from app.services.gift_cards.service import GiftCardService

logger = logging.getLogger(__name__)

SUGGESTED_AMOUNT = 25.0


class GiftStage(CreativeStage):
    """
    Suggests gift cards to attach to the card. Only runs for signed-in users;
    friend suggestions stay empty until there is a contacts source.
    """

    name = "gift"
    step = WorkflowStep.SHOPPING

    def __init__(self, gift_card_service: GiftCardService):
        self.gift_card_service = gift_card_service

    def should_run(self, state: WorkflowState) -> bool:
        return bool(state.user_id)

    async def run(self, state: WorkflowState) -> StageResult:
        analysis = state.analysis or PromptAnalysis()
        logger.info(f"Generating gift recommendations for user: {state.user_id}")

        merchants = await self.gift_card_service.recommend(analysis.interests, analysis.occasion)
        recommendations = [self._to_recommendation(m, analysis) for m in merchants]
        logger.info(f"Gift recommendations: {len(recommendations)} cards, 0 friends")
        return StageResult.ok(gift_recommendations=recommendations, suggested_friends=[])

    @staticmethod
    def _to_recommendation(merchant: GiftCardMerchant, analysis: PromptAnalysis) -> GiftRecommendation:
        text = merchant.search_text()
        matched: List[str] = [i for i in analysis.interests if i and i.lower() in text]
        if matched:
            reason = f"Matches their interest in {', '.join(matched)}"
            relevance = len(matched) / len(analysis.interests)
        else:
            reason = f"Popular pick for a {analysis.occasion}"
            relevance = 0.1
        amount = max(merchant.min_value, min(SUGGESTED_AMOUNT, merchant.max_value))
        return GiftRecommendation(
            merchant=merchant.name,
            merchant_id=merchant.id,
            amount=amount,
            reason=reason,
            relevance=round(relevance, 2),
        )
