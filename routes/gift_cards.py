from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from starlette import status

from app.dependencies import get_gift_card_service
from app.schemas.gift_cards import (
    GiftCardBalance,
    GiftCardResponse,
    IssueGiftCardRequest,
    IssueProductGiftCardRequest,
    MerchantList,
    MerchantResponse,
    ProductGiftCardResponse,
    RecommendRequest,
    WalletPass,
)
from app.services.gift_cards.service import GiftCardService
from app.utils.errors import MerchantNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/gift-cards", tags=["gift-cards"])


@router.get("/catalog", response_model=MerchantList)
async def get_catalog(service: GiftCardService = Depends(get_gift_card_service)) -> MerchantList:
    return MerchantList(merchants=await service.get_catalog())


@router.get("/search", response_model=MerchantList)
async def search_gift_cards(
    q: Optional[str] = Query(None, max_length=100),
    category: Optional[str] = Query(None, max_length=50),
    service: GiftCardService = Depends(get_gift_card_service),
) -> MerchantList:
    return MerchantList(merchants=await service.search(q, category))


@router.get("/merchants/{merchant_id}", response_model=MerchantResponse)
async def get_merchant(
    merchant_id: str,
    service: GiftCardService = Depends(get_gift_card_service),
) -> MerchantResponse:
    merchant = await service.get_merchant(merchant_id)
    if merchant is None:
        raise MerchantNotFoundError(merchant_id)
    return MerchantResponse(merchant=merchant)


@router.post("/issue", response_model=GiftCardResponse, status_code=status.HTTP_201_CREATED)
async def issue_gift_card(
    payload: IssueGiftCardRequest,
    service: GiftCardService = Depends(get_gift_card_service),
) -> GiftCardResponse:
    gift_card = await service.issue_gift_card(
        payload.merchant_id,
        payload.amount,
        payload.recipient_email,
        payload.metadata,
    )
    return GiftCardResponse(gift_card=gift_card)


@router.post("/issue-product", response_model=ProductGiftCardResponse, status_code=status.HTTP_201_CREATED)
async def issue_product_gift_card(
    payload: IssueProductGiftCardRequest,
    service: GiftCardService = Depends(get_gift_card_service),
) -> ProductGiftCardResponse:
    gift_card = await service.issue_product_gift_card(
        payload.merchant_id,
        payload.product_url,
        payload.recipient_email,
        payload.metadata,
    )
    return ProductGiftCardResponse(gift_card=gift_card)


@router.get("/{gift_card_id}/balance", response_model=GiftCardBalance)
async def get_balance(
    gift_card_id: str,
    service: GiftCardService = Depends(get_gift_card_service),
) -> GiftCardBalance:
    return await service.get_balance(gift_card_id)


@router.get("/{gift_card_id}/wallet-pass", response_model=WalletPass)
async def get_wallet_pass(
    gift_card_id: str,
    platform: Optional[str] = Query(None),
    service: GiftCardService = Depends(get_gift_card_service),
) -> WalletPass:
    # Validated by the provider so a missing platform gets the same 400 as a wrong one
    return await service.get_wallet_pass(gift_card_id, platform or "")


@router.post("/recommend", response_model=MerchantList)
async def recommend_gift_cards(
    payload: RecommendRequest,
    service: GiftCardService = Depends(get_gift_card_service),
) -> MerchantList:
    merchants = await service.recommend(payload.interests, payload.occasion, payload.limit)
    return MerchantList(merchants=merchants)
