import os
import sys
import random
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

# Keep a developer's .env from leaking real credentials into the suite
for _var in (
    "GOOGLE_AI_API_KEY",
    "ANTHROPIC_API_KEY",
    "TWILIO_ACCOUNT_SID",
    "TWILIO_AUTH_TOKEN",
    "NEOCURRENCY_API_KEY",
):
    os.environ[_var] = ""
os.environ.setdefault("ENV", "test")
os.environ["MOCK_LATENCY_ENABLED"] = "false"

from app.config import Settings
from app.core.logic_config import LogicConfig
from app.dependencies import ServiceContainer
from app.agents.orchestrator import WorkflowOrchestrator
from app.services.content_generation import ContentGenerationService
from app.services.gift_cards.catalog import load_catalog
from app.services.gift_cards.mock import MockGiftCardService
from app.services.gift_cards.service import GiftCardService
from app.services.llm.interface import LLMClient
from app.services.sms import SmsService


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        ENV="test",
        GOOGLE_AI_API_KEY=None,
        TWILIO_ACCOUNT_SID=None,
        TWILIO_AUTH_TOKEN=None,
        NEOCURRENCY_API_KEY=None,
        MOCK_LATENCY_ENABLED=False,
        WORKFLOW_TIMEOUT_SECONDS=5,
    )


@pytest.fixture
def logic() -> LogicConfig:
    return LogicConfig()


@pytest.fixture
def merchants(logic):
    return load_catalog(logic.gifts.catalog_path)


@pytest.fixture
def llm_client():
    client = AsyncMock(spec=LLMClient)
    client.provider = "gemini"
    return client


@pytest.fixture
def content_service(llm_client, settings, logic) -> ContentGenerationService:
    return ContentGenerationService(llm_client, settings, logic)


@pytest.fixture
def mock_gift_cards(merchants) -> MockGiftCardService:
    return MockGiftCardService(merchants, latency=None, rng=random.Random(1234))


@pytest.fixture
def gift_card_service(settings, mock_gift_cards, logic) -> GiftCardService:
    return GiftCardService(settings, mock_gift_cards, logic.gifts)


@pytest.fixture
def sms_service(settings) -> SmsService:
    return SmsService(settings)


@pytest.fixture
def services(settings, content_service, gift_card_service, sms_service) -> ServiceContainer:
    return ServiceContainer(
        settings=settings,
        content=content_service,
        gift_cards=gift_card_service,
        sms=sms_service,
        orchestrator=WorkflowOrchestrator.default(content_service, gift_card_service, timeout_seconds=5),
    )
