from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from app.agents.orchestrator import WorkflowOrchestrator
from app.config import Settings
from app.core.logic_config import LogicConfig, logic_config
from app.services.content_generation import ContentGenerationService
from app.services.gift_cards.catalog import load_catalog
from app.services.gift_cards.mock import MockGiftCardService
from app.services.gift_cards.service import GiftCardService
from app.services.llm.factory import LLMFactory
from app.services.sms import SmsService


@dataclass
class ServiceContainer:
    """Explicitly constructed services shared by all requests of one app instance."""

    settings: Settings
    content: ContentGenerationService
    gift_cards: GiftCardService
    sms: SmsService
    orchestrator: WorkflowOrchestrator

    @classmethod
    def build(cls, settings: Settings, config: Optional[LogicConfig] = None) -> "ServiceContainer":
        config = config or logic_config
        content = ContentGenerationService(LLMFactory.get_client(settings), settings, config)
        mock = MockGiftCardService(
            load_catalog(config.gifts.catalog_path),
            latency=config.mock_latency_ms if settings.mock_latency_enabled else None,
            validity_days=config.gifts.card_validity_days,
        )
        gift_cards = GiftCardService(settings, mock, config.gifts)
        return cls(
            settings=settings,
            content=content,
            gift_cards=gift_cards,
            sms=SmsService(settings),
            orchestrator=WorkflowOrchestrator.default(
                content, gift_cards, timeout_seconds=settings.workflow_timeout_seconds
            ),
        )


def get_services(request: Request) -> ServiceContainer:
    return request.app.state.services


def get_content_service(request: Request) -> ContentGenerationService:
    return request.app.state.services.content


def get_gift_card_service(request: Request) -> GiftCardService:
    return request.app.state.services.gift_cards


def get_orchestrator(request: Request) -> WorkflowOrchestrator:
    return request.app.state.services.orchestrator
