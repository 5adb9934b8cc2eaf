from __future__ import annotations

import logging
from typing import Any, Optional

from starlette import status

from app.config import Settings
from app.core.logic_config import GiftSettings
from app.schemas.gift_cards import (
    GiftCard,
    GiftCardBalance,
    GiftCardMerchant,
    ProductGiftCard,
    WalletPass,
)
from app.services.gift_cards.mock import MockGiftCardService
from app.utils.errors import AppError

logger = logging.getLogger(__name__)


class ProviderNotImplementedError(AppError):
    def __init__(self) -> None:
        super().__init__(
            "provider_not_implemented",
            "Real NeoCurrency API not yet implemented",
            status.HTTP_501_NOT_IMPLEMENTED,
            error="Gift card provider unavailable",
        )


class GiftCardService:
    """
    Gift card facade that routes to the mock provider when NEOCURRENCY_SANDBOX
    is on or no NEOCURRENCY_API_KEY is set.
    """

    def __init__(self, settings: Settings, mock: MockGiftCardService, config: Optional[GiftSettings] = None):
        self.mock = mock
        self.config = config or GiftSettings()
        self.use_mock = settings.neocurrency_sandbox or not settings.neocurrency_api_key
        if self.use_mock:
            logger.info("Using MOCK gift card service for development")
        else:
            logger.info("Using REAL NeoCurrency API")

    def _provider(self) -> MockGiftCardService:
        if self.use_mock:
            return self.mock
        raise ProviderNotImplementedError()

    async def get_catalog(self) -> list[GiftCardMerchant]:
        return await self._provider().get_catalog()

    async def search(self, query: Optional[str] = None, category: Optional[str] = None) -> list[GiftCardMerchant]:
        return await self._provider().search(query, category)

    async def get_merchant(self, merchant_id: str) -> Optional[GiftCardMerchant]:
        return await self._provider().get_merchant(merchant_id)

    async def issue_gift_card(
        self,
        merchant_id: str,
        amount: float,
        recipient_email: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> GiftCard:
        return await self._provider().issue_gift_card(merchant_id, amount, recipient_email, metadata)

    async def issue_product_gift_card(
        self,
        merchant_id: str,
        product_url: str,
        recipient_email: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> ProductGiftCard:
        return await self._provider().issue_product_gift_card(merchant_id, product_url, recipient_email, metadata)

    async def get_balance(self, gift_card_id: str) -> GiftCardBalance:
        return await self._provider().get_balance(gift_card_id)

    async def get_wallet_pass(self, gift_card_id: str, platform: str) -> WalletPass:
        return await self._provider().get_wallet_pass(gift_card_id, platform)

    async def recommend(
        self,
        interests: list[str],
        occasion: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[GiftCardMerchant]:
        limit = min(limit or self.config.recommend_limit, self.config.recommend_limit_max)
        return await self._provider().recommend(interests, occasion, limit)
