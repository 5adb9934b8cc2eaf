from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator


class GiftCardStatus(str, Enum):
    ACTIVE = "active"
    REDEEMED = "redeemed"
    EXPIRED = "expired"


class WalletPlatform(str, Enum):
    APPLE = "apple"
    GOOGLE = "google"


class GiftCardMerchant(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    logo_url: str
    categories: list[str] = Field(default_factory=list)
    min_value: float = Field(..., gt=0)
    max_value: float = Field(..., gt=0)
    currency: str = "USD"
    available: bool = True
    description: Optional[str] = None

    @model_validator(mode="after")
    def _check_value_range(self) -> "GiftCardMerchant":
        if self.min_value > self.max_value:
            raise ValueError(f"Merchant '{self.id}': min_value exceeds max_value")
        return self

    def accepts(self, amount: float) -> bool:
        return self.min_value <= amount <= self.max_value

    def search_text(self) -> str:
        return f"{self.name} {self.description or ''} {' '.join(self.categories)}".lower()


class GiftCard(BaseModel):
    id: str
    merchant_id: str
    merchant_name: str
    amount: float
    currency: str
    code: str
    pin: str
    redemption_url: str
    wallet_pass_url: str
    qr_code_url: str
    expires_at: datetime
    status: GiftCardStatus = GiftCardStatus.ACTIVE
    created_at: datetime


class ProductGiftCard(GiftCard):
    product_url: str
    product_name: str
    product_image_url: str
    cart_preload_url: str
    allow_cash_conversion: bool = True


class GiftCardBalance(BaseModel):
    balance: float
    currency: str = "USD"


class WalletPass(BaseModel):
    pass_url: str
    download_url: str


class MerchantList(BaseModel):
    merchants: list[GiftCardMerchant]


class MerchantResponse(BaseModel):
    merchant: GiftCardMerchant


class IssueGiftCardRequest(BaseModel):
    merchant_id: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0)
    recipient_email: EmailStr
    metadata: Optional[dict[str, Any]] = None


class IssueProductGiftCardRequest(BaseModel):
    merchant_id: str = Field(..., min_length=1)
    product_url: str = Field(..., min_length=1)
    recipient_email: EmailStr
    metadata: Optional[dict[str, Any]] = None


class GiftCardResponse(BaseModel):
    gift_card: GiftCard


class ProductGiftCardResponse(BaseModel):
    gift_card: ProductGiftCard


class RecommendRequest(BaseModel):
    interests: list[str] = Field(..., min_length=1)
    occasion: Optional[str] = None
    limit: Optional[int] = Field(None, ge=1)
