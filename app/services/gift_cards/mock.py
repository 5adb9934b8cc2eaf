"""
Mock gift card provider.

Mimics the NeoCurrency API for development: catalog, search, issuance and
balance all run against an in-memory merchant list with simulated latency.
Issued cards are fabricated and never stored.
"""
from __future__ import annotations

import asyncio
import logging
import random
import string
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from urllib.parse import quote, urlparse

from starlette import status

from app.core.logic_config import MockLatency
from app.schemas.gift_cards import (
    GiftCard,
    GiftCardBalance,
    GiftCardMerchant,
    GiftCardStatus,
    ProductGiftCard,
    WalletPass,
    WalletPlatform,
)
from app.utils.errors import (
    AmountOutOfRangeError,
    AppError,
    InvalidPlatformError,
    MerchantNotFoundError,
)

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits


class MockGiftCardService:
    def __init__(
        self,
        merchants: list[GiftCardMerchant],
        latency: Optional[MockLatency] = None,
        validity_days: int = 365,
        rng: Optional[random.Random] = None,
    ):
        self._merchants = list(merchants)
        self._by_id = {m.id: m for m in self._merchants}
        self.latency = latency
        self.validity_days = validity_days
        self._rng = rng or random.Random()

    async def _delay(self, operation: str) -> None:
        if self.latency is None:
            return
        ms = getattr(self.latency, operation, 0)
        if ms > 0:
            await asyncio.sleep(ms / 1000)

    async def get_catalog(self) -> list[GiftCardMerchant]:
        await self._delay("catalog")
        return list(self._merchants)

    async def search(self, query: Optional[str] = None, category: Optional[str] = None) -> list[GiftCardMerchant]:
        await self._delay("search")
        results = self._merchants

        if query:
            needle = query.lower()
            results = [
                m for m in results
                if needle in m.name.lower()
                or needle in (m.description or "").lower()
                or any(needle in c.lower() for c in m.categories)
            ]

        if category:
            wanted = category.lower()
            results = [m for m in results if wanted in (c.lower() for c in m.categories)]

        return list(results)

    async def get_merchant(self, merchant_id: str) -> Optional[GiftCardMerchant]:
        await self._delay("merchant")
        return self._by_id.get(merchant_id)

    def _require_merchant(self, merchant_id: str) -> GiftCardMerchant:
        merchant = self._by_id.get(merchant_id)
        if merchant is None:
            raise MerchantNotFoundError(merchant_id)
        if not merchant.available:
            raise AppError(
                "merchant_unavailable",
                f"Merchant {merchant_id} is not currently issuing gift cards",
                status.HTTP_409_CONFLICT,
                {"merchant_id": merchant_id},
                error="Merchant unavailable",
            )
        return merchant

    def _build_card(self, merchant: GiftCardMerchant, amount: float) -> GiftCard:
        card_id = f"gc_mock_{int(time.time() * 1000)}_{self._token(7)}"
        now = datetime.now(timezone.utc)
        return GiftCard(
            id=card_id,
            merchant_id=merchant.id,
            merchant_name=merchant.name,
            amount=amount,
            currency=merchant.currency,
            code=self._generate_code(),
            pin=self._generate_pin(),
            redemption_url=f"https://mock-redemption.com/{merchant.id}?code={card_id}",
            wallet_pass_url=f"https://mock-wallet.com/pass/{card_id}",
            qr_code_url=f"https://api.qrserver.com/v1/create-qr-code/?size=300x300&data={card_id}",
            expires_at=now + timedelta(days=self.validity_days),
            status=GiftCardStatus.ACTIVE,
            created_at=now,
        )

    async def issue_gift_card(
        self,
        merchant_id: str,
        amount: float,
        recipient_email: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> GiftCard:
        await self._delay("issue")
        merchant = self._require_merchant(merchant_id)

        if not merchant.accepts(amount):
            raise AmountOutOfRangeError(amount, merchant.min_value, merchant.max_value)

        card = self._build_card(merchant, amount)
        logger.info(
            "Mock gift card issued: merchant=%s amount=%.2f code=%s recipient=%s",
            merchant.name, amount, card.code, recipient_email,
        )
        return card

    async def issue_product_gift_card(
        self,
        merchant_id: str,
        product_url: str,
        recipient_email: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> ProductGiftCard:
        merchant = self._require_merchant(merchant_id)

        product_name = self.extract_product_name(product_url)
        estimated_price = self._estimate_price(merchant)

        card = await self.issue_gift_card(merchant.id, estimated_price, recipient_email, metadata)
        product_card = ProductGiftCard(
            **card.model_dump(),
            product_url=product_url,
            product_name=product_name,
            product_image_url=f"https://via.placeholder.com/300x300?text={quote(product_name)}",
            cart_preload_url=f"{product_url}?gift_card={card.id}",
            allow_cash_conversion=True,
        )
        logger.info(
            "Mock product gift card issued: merchant=%s product=%r amount=%.2f recipient=%s",
            merchant.name, product_name, estimated_price, recipient_email,
        )
        return product_card

    async def get_balance(self, gift_card_id: str) -> GiftCardBalance:
        await self._delay("balance")
        # Not a ledger: every lookup draws a fresh value in [0, 100)
        return GiftCardBalance(balance=round(self._rng.random() * 100, 2), currency="USD")

    async def get_wallet_pass(self, gift_card_id: str, platform: str) -> WalletPass:
        try:
            platform = WalletPlatform(platform).value
        except ValueError:
            raise InvalidPlatformError(platform)
        await self._delay("wallet_pass")
        return WalletPass(
            pass_url=f"https://mock-wallet.com/{platform}/{gift_card_id}",
            download_url=f"https://mock-wallet.com/download/{platform}/{gift_card_id}",
        )

    async def recommend(
        self,
        interests: list[str],
        occasion: Optional[str] = None,
        limit: int = 3,
    ) -> list[GiftCardMerchant]:
        await self._delay("recommend")
        needles = [i.lower().strip() for i in interests if i and i.strip()]

        matches = [
            merchant for merchant in self._merchants
            if any(needle in merchant.search_text() for needle in needles)
        ]

        if not matches:
            logger.info("No merchants matched interests %s (occasion=%s), returning popular picks", interests, occasion)
            return self._merchants[:limit]

        return matches[:limit]

    def _estimate_price(self, merchant: GiftCardMerchant) -> float:
        """Stand-in product price in $20-200, kept inside the merchant's accepted range."""
        low = max(20.0, merchant.min_value)
        high = min(200.0, merchant.max_value)
        if low > high:
            low, high = merchant.min_value, merchant.max_value
        return round(low + self._rng.random() * (high - low), 2)

    @staticmethod
    def extract_product_name(url: str) -> str:
        path = urlparse(url).path.rstrip("/")
        last_part = path.rsplit("/", 1)[-1] or "Product"
        return last_part.replace("-", " ")[:50]

    def _token(self, length: int) -> str:
        return "".join(self._rng.choice(string.ascii_lowercase + string.digits) for _ in range(length))

    def _generate_code(self) -> str:
        return "-".join(
            "".join(self._rng.choice(CODE_ALPHABET) for _ in range(4))
            for _ in range(4)
        )

    def _generate_pin(self) -> str:
        return str(self._rng.randint(1000, 9999))
