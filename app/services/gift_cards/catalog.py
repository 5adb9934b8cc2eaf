from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import ValidationError

from app.schemas.gift_cards import GiftCardMerchant

PROJECT_ROOT = Path(__file__).resolve().parents[3]


def resolve_catalog_path(path: str) -> Path:
    candidate = Path(path)
    if candidate.is_absolute() or candidate.exists():
        return candidate
    return PROJECT_ROOT / candidate


def load_catalog(path: str) -> list[GiftCardMerchant]:
    """Loads merchant records in declaration order; the order is meaningful."""
    resolved = resolve_catalog_path(path)
    try:
        with open(resolved, "r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except FileNotFoundError as exc:
        raise ValueError(f"Merchant catalog not found: {resolved}") from exc
    except yaml.YAMLError as exc:
        raise ValueError(f"Merchant catalog YAML is invalid: {resolved}") from exc

    if not isinstance(data, dict) or not isinstance(data.get("merchants"), list):
        raise ValueError("Merchant catalog must be a mapping with a 'merchants' list")

    merchants: list[GiftCardMerchant] = []
    seen: set[str] = set()
    for index, raw in enumerate(data["merchants"]):
        try:
            merchant = GiftCardMerchant.model_validate(raw)
        except ValidationError as exc:
            raise ValueError(f"Invalid merchant entry #{index}: {exc}") from exc
        if merchant.id in seen:
            raise ValueError(f"Duplicate merchant id in catalog: {merchant.id}")
        seen.add(merchant.id)
        merchants.append(merchant)

    return merchants
