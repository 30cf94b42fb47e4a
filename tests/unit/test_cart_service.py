"""Unit tests for the cart service."""

import asyncio
from typing import Any, Optional

import pytest

from cafe.models import CartItemInput, MenuItem, NotFound, PriceType
from cafe.services.cache import InMemoryCacheService
from cafe.services.cart import CART_TTL_SECONDS, CartService
from cafe.services.cart.service import (
    ERROR_ITEM_NAME,
    REASON_NOT_FOUND,
    REASON_UNAVAILABLE,
    UNKNOWN_ITEM_NAME,
)
from cafe.services.menu import InMemoryMenuCatalog

USER = 7


class YieldingCache(InMemoryCacheService):
    """Cache whose reads suspend, letting concurrent writers interleave."""

    async def get(self, key: str) -> Any | None:
        value = await super().get(key)
        await asyncio.sleep(0)
        return value


class BrokenCatalog(InMemoryMenuCatalog):
    async def find_food_item(self, item_id: int) -> Optional[MenuItem]:
        raise RuntimeError("products service unavailable")


@pytest.fixture
def service(cache: InMemoryCacheService, catalog: InMemoryMenuCatalog) -> CartService:
    return CartService(cache, catalog)


def food(menu_id: int, quantity: int = 1, **kwargs: Any) -> CartItemInput:
    return CartItemInput(food_menu_id=menu_id, quantity=quantity, **kwargs)


def beverage(menu_id: int, quantity: int = 1, **kwargs: Any) -> CartItemInput:
    return CartItemInput(beverage_menu_id=menu_id, quantity=quantity, **kwargs)


class TestGetCart:
    @pytest.mark.asyncio
    async def test_initialises_empty_cart(self, service: CartService, cache: InMemoryCacheService) -> None:
        assert await service.get_cart(USER) == []
        assert await cache.get("cart:7") == []
        assert cache.ttl("cart:7") == CART_TTL_SECONDS

    @pytest.mark.asyncio
    async def test_expired_cart_reads_empty(self, service: CartService, clock) -> None:
        await service.add_to_cart(USER, food(1))
        clock.advance(CART_TTL_SECONDS)
        assert await service.get_cart(USER) == []

    @pytest.mark.asyncio
    async def test_reads_lines_written_by_other_components(
        self, service: CartService, cache: InMemoryCacheService
    ) -> None:
        await cache.set(
            "cart:7",
            [{"id": "abc", "beverageMenuId": 10, "quantity": 2, "options": {"priceType": "ice"}}],
        )
        cart = await service.get_cart(USER)
        assert cart[0].beverage_menu_id == 10
        assert cart[0].price_type == PriceType.ICE


class TestAddToCart:
    """Tests for adding and merging cart lines."""

    @pytest.mark.asyncio
    async def test_same_item_merges_quantities(self, service: CartService) -> None:
        await service.add_to_cart(USER, food(1, 2))
        cart = await service.add_to_cart(USER, food(1, 3))
        assert len(cart) == 1
        assert cart[0].quantity == 5
        assert await service.get_cart_item_count(USER) == 5

    @pytest.mark.asyncio
    async def test_merge_overwrites_notes_only_when_given(self, service: CartService) -> None:
        await service.add_to_cart(USER, food(1, notes="extra chili"))
        cart = await service.add_to_cart(USER, food(1))
        assert cart[0].notes == "extra chili"
        cart = await service.add_to_cart(USER, food(1, notes="no chili"))
        assert cart[0].notes == "no chili"

    @pytest.mark.asyncio
    async def test_new_lines_get_unique_ids(self, service: CartService) -> None:
        await service.add_to_cart(USER, food(1))
        await service.add_to_cart(USER, food(3))
        cart = await service.add_to_cart(USER, beverage(10))
        ids = [line.id for line in cart]
        assert len(set(ids)) == 3
        assert all(ids)

    @pytest.mark.asyncio
    async def test_price_snapshot_from_catalog(self, service: CartService) -> None:
        cart = await service.add_to_cart(USER, food(1))
        assert cart[0].price == 35000

    @pytest.mark.asyncio
    async def test_client_price_is_kept(self, service: CartService) -> None:
        cart = await service.add_to_cart(USER, food(1, price=30000))
        assert cart[0].price == 30000

    @pytest.mark.asyncio
    async def test_beverage_variants_are_separate_lines(self, service: CartService) -> None:
        await service.add_to_cart(USER, beverage(10, price_type=PriceType.HOT))
        await service.add_to_cart(USER, beverage(10, price_type=PriceType.ICE))
        cart = await service.add_to_cart(USER, beverage(10, options={"price_type": "ice"}))
        assert len(cart) == 2
        hot, ice = cart
        assert hot.price == 15000
        assert hot.quantity == 1
        assert ice.price == 18000
        assert ice.quantity == 2
        assert ice.price_type == PriceType.ICE

    @pytest.mark.asyncio
    async def test_variant_price_overrides_client_price(self, service: CartService) -> None:
        cart = await service.add_to_cart(USER, beverage(10, price=1, price_type=PriceType.ICE))
        assert cart[0].price == 18000

    @pytest.mark.asyncio
    async def test_food_id_wins_when_both_given(self, service: CartService) -> None:
        cart = await service.add_to_cart(USER, CartItemInput(food_menu_id=1, beverage_menu_id=10))
        assert cart[0].food_menu_id == 1
        assert cart[0].beverage_menu_id is None

    @pytest.mark.asyncio
    async def test_missing_ids_raise_not_found(self, service: CartService) -> None:
        with pytest.raises(NotFound) as exc_info:
            await service.add_to_cart(USER, CartItemInput(quantity=1))
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_unknown_item_raises_not_found(self, service: CartService) -> None:
        with pytest.raises(NotFound, match="Food menu item with ID 99 not found"):
            await service.add_to_cart(USER, food(99))
        with pytest.raises(NotFound, match="Beverage menu item with ID 99 not found"):
            await service.add_to_cart(USER, beverage(99))
        assert await service.get_cart(USER) == []

    @pytest.mark.asyncio
    async def test_persists_camel_case_layout_and_refreshes_ttl(
        self, service: CartService, cache: InMemoryCacheService, clock
    ) -> None:
        await service.add_to_cart(USER, food(1, notes="mild"))
        clock.advance(100)
        await service.add_to_cart(USER, food(1))
        stored = await cache.get("cart:7")
        assert stored == [
            {"id": stored[0]["id"], "foodMenuId": 1, "quantity": 2, "notes": "mild", "price": 35000.0}
        ]
        assert cache.ttl("cart:7") == CART_TTL_SECONDS

    @pytest.mark.asyncio
    async def test_concurrent_adds_race_last_write_wins(self, catalog: InMemoryMenuCatalog, clock) -> None:
        service = CartService(YieldingCache(clock=clock), catalog)
        await service.get_cart(USER)

        await asyncio.gather(
            service.add_to_cart(USER, food(1)),
            service.add_to_cart(USER, beverage(10)),
        )

        # Both writers read the empty cart, so one line is lost
        cart = await service.get_cart(USER)
        assert len(cart) == 1


class TestUpdateAndRemove:
    @pytest.mark.asyncio
    async def test_update_quantity_and_notes(self, service: CartService) -> None:
        cart = await service.add_to_cart(USER, food(1))
        line_id = cart[0].id
        cart = await service.update_cart_item(USER, line_id, 4, notes="to go")
        assert cart[0].quantity == 4
        assert cart[0].notes == "to go"

    @pytest.mark.asyncio
    async def test_update_without_notes_keeps_them(self, service: CartService) -> None:
        cart = await service.add_to_cart(USER, food(1, notes="to go"))
        cart = await service.update_cart_item(USER, cart[0].id, 2)
        assert cart[0].notes == "to go"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("quantity", [0, -1])
    async def test_non_positive_quantity_removes_line(self, service: CartService, quantity: int) -> None:
        cart = await service.add_to_cart(USER, food(1))
        await service.update_cart_item(USER, cart[0].id, quantity)
        assert await service.get_cart(USER) == []

    @pytest.mark.asyncio
    async def test_update_unknown_line_raises(self, service: CartService) -> None:
        with pytest.raises(NotFound, match="Cart item with ID missing not found"):
            await service.update_cart_item(USER, "missing", 1)

    @pytest.mark.asyncio
    async def test_remove_is_idempotent(self, service: CartService) -> None:
        cart = await service.add_to_cart(USER, food(1))
        assert await service.remove_from_cart(USER, "missing") == cart
        assert await service.remove_from_cart(USER, cart[0].id) == []
        assert await service.remove_from_cart(USER, cart[0].id) == []

    @pytest.mark.asyncio
    async def test_clear_cart_deletes_entry(self, service: CartService, cache: InMemoryCacheService) -> None:
        await service.add_to_cart(USER, food(1))
        await service.clear_cart(USER)
        assert await cache.exists("cart:7") is False
        assert await service.get_cart_item_count(USER) == 0


class TestCartDetails:
    """Tests for the enriched cart view."""

    @pytest.mark.asyncio
    async def test_totals(self, service: CartService) -> None:
        await service.add_to_cart(USER, food(1, 2))
        await service.add_to_cart(USER, beverage(10, price_type=PriceType.ICE))
        summary = await service.get_cart_with_details(USER)
        assert summary.total_items == 3
        assert summary.subtotal == 2 * 35000 + 18000
        khao_soi = summary.items[0]
        assert khao_soi.name == "Khao Soi"
        assert khao_soi.image == "khao-soi.jpg"
        assert khao_soi.category == "Noodles"

    @pytest.mark.asyncio
    async def test_subtotal_is_rounded(self, service: CartService) -> None:
        await service.add_to_cart(USER, food(3, 3))
        summary = await service.get_cart_with_details(USER)
        assert summary.subtotal == 0.3

    @pytest.mark.asyncio
    async def test_missing_item_is_a_zero_priced_placeholder(
        self, service: CartService, catalog: InMemoryMenuCatalog, cache: InMemoryCacheService
    ) -> None:
        await service.add_to_cart(USER, food(1))
        await cache.set(
            "cart:7",
            (await cache.get("cart:7")) + [{"id": "gone", "foodMenuId": 404, "quantity": 2, "price": 5000}],
        )
        summary = await service.get_cart_with_details(USER)
        placeholder = summary.items[1]
        assert placeholder.name == UNKNOWN_ITEM_NAME
        assert placeholder.price == 0
        assert summary.subtotal == 35000
        assert summary.total_items == 3

    @pytest.mark.asyncio
    async def test_catalog_failure_is_an_error_placeholder(self, cache: InMemoryCacheService) -> None:
        service = CartService(cache, BrokenCatalog())
        await cache.set("cart:7", [{"id": "a", "foodMenuId": 1, "quantity": 1, "price": 35000}])
        summary = await service.get_cart_with_details(USER)
        assert summary.items[0].name == ERROR_ITEM_NAME
        assert summary.items[0].price == 0
        assert summary.subtotal == 0


class TestValidateCartItems:
    @pytest.mark.asyncio
    async def test_valid_cart(self, service: CartService) -> None:
        await service.add_to_cart(USER, food(1))
        result = await service.validate_cart_items(USER)
        assert result.valid is True
        assert result.invalid_items == []
        assert result.details[0].name == "Khao Soi"

    @pytest.mark.asyncio
    async def test_distinguishes_missing_and_inactive(
        self, service: CartService, cache: InMemoryCacheService
    ) -> None:
        await cache.set(
            "cart:7",
            [
                {"id": "ok", "foodMenuId": 1, "quantity": 1},
                {"id": "inactive", "foodMenuId": 2, "quantity": 1},
                {"id": "missing", "beverageMenuId": 99, "quantity": 1},
            ],
        )
        result = await service.validate_cart_items(USER)
        assert result.valid is False
        assert result.invalid_items == ["inactive", "missing"]
        reasons = {check.id: check.reason for check in result.details}
        assert reasons == {"ok": None, "inactive": REASON_UNAVAILABLE, "missing": REASON_NOT_FOUND}

    @pytest.mark.asyncio
    async def test_validation_does_not_modify_cart(
        self, service: CartService, cache: InMemoryCacheService
    ) -> None:
        lines = [{"id": "inactive", "foodMenuId": 2, "quantity": 1}]
        await cache.set("cart:7", lines)
        await service.validate_cart_items(USER)
        assert await cache.get("cart:7") == lines


class TestMigrateCartFromLocal:
    @pytest.mark.asyncio
    async def test_merges_and_counts_dropped_lines(self, service: CartService) -> None:
        await service.add_to_cart(USER, food(1, 1))
        local = [
            CartItemInput.model_validate(raw)
            for raw in [
                {"foodMenuId": 1, "quantity": 2},
                {"beverageMenuId": 10, "quantity": 1, "options": {"priceType": "hot"}},
                {"foodMenuId": 2, "quantity": 1},
                {"foodMenuId": 404, "quantity": 1},
                {"quantity": 1},
            ]
        ]
        result = await service.migrate_cart_from_local(USER, local)
        assert result.dropped_count == 3
        assert [(line.food_menu_id, line.beverage_menu_id, line.quantity) for line in result.cart] == [
            (1, None, 3),
            (None, 10, 1),
        ]
        assert result.cart[1].price == 15000
        assert await service.get_cart(USER) == result.cart

    @pytest.mark.asyncio
    async def test_empty_migration(self, service: CartService) -> None:
        result = await service.migrate_cart_from_local(USER, [])
        assert result.cart == []
        assert result.dropped_count == 0
