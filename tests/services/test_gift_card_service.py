import re

import pytest
import yaml

from app.schemas.gift_cards import GiftCardMerchant
from app.services.gift_cards.catalog import load_catalog
from app.services.gift_cards.mock import MockGiftCardService
from app.services.gift_cards.service import GiftCardService, ProviderNotImplementedError
from app.utils.errors import AmountOutOfRangeError, AppError, InvalidPlatformError, MerchantNotFoundError


def test_catalog_value_ranges_are_consistent(merchants):
    assert merchants
    for merchant in merchants:
        assert merchant.min_value <= merchant.max_value


def test_load_catalog_rejects_duplicates(tmp_path):
    entry = {"id": "dup", "name": "Dup", "logo_url": "x", "min_value": 1, "max_value": 2}
    path = tmp_path / "merchants.yaml"
    path.write_text(yaml.safe_dump({"merchants": [entry, entry]}))

    with pytest.raises(ValueError, match="Duplicate"):
        load_catalog(str(path))


def test_load_catalog_rejects_inverted_range(tmp_path):
    entry = {"id": "bad", "name": "Bad", "logo_url": "x", "min_value": 50, "max_value": 10}
    path = tmp_path / "merchants.yaml"
    path.write_text(yaml.safe_dump({"merchants": [entry]}))

    with pytest.raises(ValueError, match="Invalid merchant entry"):
        load_catalog(str(path))


def test_load_catalog_missing_file(tmp_path):
    with pytest.raises(ValueError, match="not found"):
        load_catalog(str(tmp_path / "missing.yaml"))


@pytest.mark.asyncio
async def test_issue_rejects_amounts_outside_range(gift_card_service, merchants):
    for merchant in merchants:
        for amount in (merchant.min_value - 0.01, merchant.max_value + 0.01):
            with pytest.raises(AmountOutOfRangeError):
                await gift_card_service.issue_gift_card(merchant.id, amount, "a@b.com")


@pytest.mark.asyncio
async def test_issue_echoes_amount_and_merchant(gift_card_service, merchants):
    for merchant in merchants:
        for amount in (merchant.min_value, merchant.max_value):
            card = await gift_card_service.issue_gift_card(merchant.id, amount, "a@b.com")
            assert card.amount == amount
            assert card.merchant_id == merchant.id
            assert card.currency == merchant.currency
            assert re.fullmatch(r"[A-Z0-9]{4}(-[A-Z0-9]{4}){3}", card.code)
            assert (card.expires_at - card.created_at).days == 365


@pytest.mark.asyncio
async def test_issue_unknown_merchant(gift_card_service):
    with pytest.raises(MerchantNotFoundError):
        await gift_card_service.issue_gift_card("nope", 10, "a@b.com")


@pytest.mark.asyncio
async def test_issue_unavailable_merchant_is_conflict(merchants):
    closed = merchants[0].model_copy(update={"available": False})
    service = MockGiftCardService([closed] + merchants[1:])

    with pytest.raises(AppError) as exc_info:
        await service.issue_gift_card(closed.id, 10, "a@b.com")

    assert exc_info.value.http_status == 409


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "query,category",
    [("coffee", None), ("ON", None), (None, "food"), ("delivery", "food"), ("zzz", None)],
)
async def test_search_results_are_matching_subset(gift_card_service, merchants, query, category):
    results = await gift_card_service.search(query, category)

    assert all(m in merchants for m in results)
    for merchant in results:
        if query:
            assert query.lower() in merchant.search_text()
        if category:
            assert category in merchant.categories


@pytest.mark.asyncio
async def test_search_category_is_exact(gift_card_service):
    assert await gift_card_service.search(category="foo") == []


@pytest.mark.asyncio
@pytest.mark.parametrize("limit", [1, 3, 12, 50])
async def test_recommend_fallback_is_catalog_head(mock_gift_cards, merchants, limit):
    results = await mock_gift_cards.recommend(["underwater basket weaving"], limit=limit)

    assert results == merchants[: min(limit, len(merchants))]


@pytest.mark.asyncio
async def test_recommend_returns_only_matches(mock_gift_cards):
    results = await mock_gift_cards.recommend(["food", "shoes"], limit=10)

    assert [m.id for m in results] == ["starbucks", "uber", "doordash", "nike"]
    for merchant in results:
        assert "food" in merchant.search_text() or "shoes" in merchant.search_text()


@pytest.mark.asyncio
async def test_recommend_keeps_catalog_order(mock_gift_cards, merchants):
    results = await mock_gift_cards.recommend(["food", "music", "entertainment"], limit=12)

    catalog_order = [m.id for m in merchants]
    ids = [m.id for m in results]
    assert ids[:3] == ["starbucks", "apple", "spotify"]
    assert ids == sorted(ids, key=catalog_order.index)


@pytest.mark.asyncio
async def test_service_recommend_caps_limit(gift_card_service, merchants):
    assert len(await gift_card_service.recommend(["nothing-matches"])) == 3
    assert len(await gift_card_service.recommend(["nothing-matches"], limit=100)) == 12


@pytest.mark.asyncio
async def test_product_card(mock_gift_cards):
    card = await mock_gift_cards.issue_product_gift_card(
        "target", "https://www.target.com/p/cozy-throw-blanket/", "a@b.com"
    )

    assert card.product_name == "cozy throw blanket"
    assert 20 <= card.amount <= 200
    assert card.allow_cash_conversion is True


@pytest.mark.asyncio
@pytest.mark.parametrize("merchant_id", ["spotify", "netflix", "apple", "nike"])
async def test_product_card_price_stays_in_merchant_range(mock_gift_cards, merchant_id):
    merchant = await mock_gift_cards.get_merchant(merchant_id)

    for _ in range(200):
        card = await mock_gift_cards.issue_product_gift_card(merchant_id, "https://shop.example/item", "a@b.com")
        assert merchant.min_value <= card.amount <= merchant.max_value


@pytest.mark.asyncio
async def test_product_card_for_merchant_below_twenty_dollars():
    tiny = GiftCardMerchant(id="tiny", name="Tiny", logo_url="x", categories=["music"], min_value=1, max_value=10)
    service = MockGiftCardService([tiny], latency=None)

    card = await service.issue_product_gift_card("tiny", "https://shop.example/item", "a@b.com")

    assert 1 <= card.amount <= 10


def test_extract_product_name_truncates():
    name = MockGiftCardService.extract_product_name("https://shop.example/" + "-".join(["word"] * 20))

    assert len(name) == 50
    assert "-" not in name


@pytest.mark.asyncio
async def test_wallet_pass_platforms(mock_gift_cards):
    apple = await mock_gift_cards.get_wallet_pass("gc_1", "apple")
    assert apple.download_url == "https://mock-wallet.com/download/apple/gc_1"

    with pytest.raises(InvalidPlatformError):
        await mock_gift_cards.get_wallet_pass("gc_1", "blackberry")


@pytest.mark.asyncio
async def test_real_provider_not_implemented(settings, mock_gift_cards, logic):
    live = settings.model_copy(update={"neocurrency_api_key": "live-key", "neocurrency_sandbox": False})
    service = GiftCardService(live, mock_gift_cards, logic.gifts)

    assert service.use_mock is False
    with pytest.raises(ProviderNotImplementedError):
        await service.get_catalog()


def test_sandbox_forces_mock(settings, mock_gift_cards):
    sandbox = settings.model_copy(update={"neocurrency_api_key": "live-key", "neocurrency_sandbox": True})

    assert GiftCardService(sandbox, mock_gift_cards).use_mock is True
