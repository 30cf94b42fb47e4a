"""Cart service.

Per-user shopping cart stored in the shared cache under ``cart:{userId}``
with a rolling 7-day TTL refreshed on every write.

Every mutation is read-modify-write against the cache with no
compare-and-swap: two concurrent writers for the same user race and the
last write wins. Hardening this (per-key lock or WATCH/MULTI) changes the
behaviour other cart consumers rely on and must be done deliberately.
"""

import asyncio
import logging
from typing import Optional
from uuid import uuid4

from cafe.models import (
    CartItemInput,
    CartLine,
    CartLineCheck,
    CartLineDetails,
    CartLineOptions,
    CartSummary,
    CartValidation,
    MenuItem,
    MigrationResult,
    NotFound,
    PriceType,
)
from cafe.services.cache import CacheService
from cafe.services.menu import MenuCatalog

logger = logging.getLogger(__name__)

CART_TTL_SECONDS = 7 * 24 * 60 * 60

FOOD = "food"
BEVERAGE = "beverage"

UNKNOWN_ITEM_NAME = "Unknown Item"
ERROR_ITEM_NAME = "Error Loading Item"
UNKNOWN_CATEGORY = "Unknown"
REASON_NOT_FOUND = "Item not found"
REASON_UNAVAILABLE = "Item no longer available"


def generate_line_id() -> str:
    return uuid4().hex


def resolve_unit_price(item: MenuItem, price_type: Optional[PriceType]) -> float:
    """Catalog price for a line, honouring the hot/ice beverage variant."""
    if price_type == PriceType.HOT and item.hot_price is not None:
        return item.hot_price
    if price_type == PriceType.ICE and item.ice_price is not None:
        return item.ice_price
    return item.price if item.price is not None else 0


class CartService:
    """Cache-backed shopping cart.

    Attributes:
        _cache: Shared TTL cache holding ``cart:{userId}`` entries.
        _catalog: Menu catalog used for existence, availability and prices.
        _ttl: Cart lifetime in seconds, refreshed on every write.
    """

    def __init__(
        self,
        cache: CacheService,
        catalog: MenuCatalog,
        ttl_seconds: int = CART_TTL_SECONDS,
    ) -> None:
        self._cache = cache
        self._catalog = catalog
        self._ttl = ttl_seconds

    async def _save(self, user_id: int | str, cart: list[CartLine]) -> None:
        payload = [line.model_dump(mode="json", by_alias=True, exclude_none=True) for line in cart]
        await self._cache.set(CacheService.build_cart_key(user_id), payload, ttl_seconds=self._ttl)

    async def _lookup(self, line: CartLine | CartItemInput) -> tuple[Optional[str], Optional[MenuItem]]:
        """Find the catalog item a line refers to; food id takes precedence."""
        if line.food_menu_id is not None:
            return FOOD, await self._catalog.find_food_item(line.food_menu_id)
        if line.beverage_menu_id is not None:
            return BEVERAGE, await self._catalog.find_beverage_item(line.beverage_menu_id)
        return None, None

    @staticmethod
    def _find_matching_line(
        cart: list[CartLine],
        kind: str,
        menu_id: int,
        price_type: Optional[PriceType],
    ) -> Optional[CartLine]:
        for line in cart:
            if kind == FOOD and line.food_menu_id == menu_id:
                return line
            if kind == BEVERAGE and line.beverage_menu_id == menu_id and line.price_type == price_type:
                return line
        return None

    @staticmethod
    def _merge_line(
        cart: list[CartLine],
        kind: str,
        item: CartItemInput,
        price: Optional[float],
    ) -> None:
        """Increment an existing line for the same product or append a new one."""
        menu_id = item.food_menu_id if kind == FOOD else item.beverage_menu_id
        price_type = item.selected_price_type if kind == BEVERAGE else None
        existing = CartService._find_matching_line(cart, kind, menu_id, price_type)

        if existing is not None:
            existing.quantity += item.quantity
            if item.notes:
                existing.notes = item.notes
            if price:
                existing.price = price
            return

        cart.append(
            CartLine(
                id=generate_line_id(),
                food_menu_id=menu_id if kind == FOOD else None,
                beverage_menu_id=menu_id if kind == BEVERAGE else None,
                quantity=item.quantity,
                notes=item.notes,
                price=price,
                options=CartLineOptions(price_type=price_type) if price_type else None,
            )
        )

    async def get_cart(self, user_id: int | str) -> list[CartLine]:
        """Return the user's cart, initialising an empty one if absent."""
        key = CacheService.build_cart_key(user_id)
        cached = await self._cache.get(key)
        if cached is None:
            await self._cache.set(key, [], ttl_seconds=self._ttl)
            return []
        return [CartLine.model_validate(line) for line in cached]

    async def _line_details(self, line: CartLine) -> tuple[CartLineDetails, float]:
        """Resolve a line against the catalog; returns (details, line total)."""
        base = line.model_dump()
        try:
            kind, item = await self._lookup(line)
        except Exception as e:
            logger.warning(f"[CART] Error fetching menu item for line {line.id}: {e}")
            return CartLineDetails(**{**base, "price": 0, "name": ERROR_ITEM_NAME, "category": UNKNOWN_CATEGORY}), 0.0

        if item is None:
            if kind is not None:
                menu_id = line.food_menu_id if kind == FOOD else line.beverage_menu_id
                logger.warning(f"[CART] {kind.capitalize()} item with ID {menu_id} not found")
            return CartLineDetails(**{**base, "price": 0, "name": UNKNOWN_ITEM_NAME, "category": UNKNOWN_CATEGORY}), 0.0

        price = line.price or resolve_unit_price(item, line.price_type)
        details = CartLineDetails(
            **{**base, "price": price, "name": item.name, "image": item.image, "category": item.category}
        )
        return details, price * line.quantity

    async def get_cart_with_details(self, user_id: int | str) -> CartSummary:
        """Cart enriched with catalog data, total quantity and subtotal.

        Lines whose menu item is missing or fails to load are shown as
        placeholders priced 0 instead of failing the whole request.
        """
        cart = await self.get_cart(user_id)
        resolved = await asyncio.gather(*(self._line_details(line) for line in cart))

        subtotal = sum(line_total for _, line_total in resolved)
        return CartSummary(
            items=[details for details, _ in resolved],
            total_items=sum(line.quantity for line in cart),
            subtotal=round(subtotal, 2),
        )

    async def add_to_cart(self, user_id: int | str, item: CartItemInput) -> list[CartLine]:
        """Add a product, merging with an existing line for the same product.

        Raises:
            NotFound: If no menu id is given or the referenced item does not exist.
        """
        cart = await self.get_cart(user_id)
        kind, menu_item = await self._lookup(item)

        if kind is None:
            raise NotFound(
                "Menu item",
                message="Either food_menu_id or beverage_menu_id must be provided",
            )
        if menu_item is None:
            menu_id = item.food_menu_id if kind == FOOD else item.beverage_menu_id
            raise NotFound(f"{kind.capitalize()} menu item", menu_id)

        if kind == BEVERAGE and item.selected_price_type is not None:
            price = resolve_unit_price(menu_item, item.selected_price_type)
        else:
            price = item.price or resolve_unit_price(menu_item, None)

        self._merge_line(cart, kind, item, price)
        await self._save(user_id, cart)
        logger.info(f"[CART] User {user_id} added {kind} item, cart has {len(cart)} lines")
        return cart

    async def update_cart_item(
        self,
        user_id: int | str,
        item_id: str,
        quantity: int,
        notes: Optional[str] = None,
    ) -> list[CartLine]:
        """Set a line's quantity (and notes); quantity <= 0 removes it.

        Raises:
            NotFound: If the line does not exist.
        """
        cart = await self.get_cart(user_id)
        index = next((i for i, line in enumerate(cart) if line.id == item_id), None)
        if index is None:
            raise NotFound("Cart item", item_id)

        if quantity <= 0:
            cart.pop(index)
        else:
            cart[index].quantity = quantity
            if notes is not None:
                cart[index].notes = notes

        await self._save(user_id, cart)
        return cart

    async def remove_from_cart(self, user_id: int | str, item_id: str) -> list[CartLine]:
        """Drop a line; removing an unknown id leaves the cart unchanged."""
        cart = await self.get_cart(user_id)
        updated = [line for line in cart if line.id != item_id]
        await self._save(user_id, updated)
        return updated

    async def clear_cart(self, user_id: int | str) -> None:
        await self._cache.delete(CacheService.build_cart_key(user_id))

    async def validate_cart_items(self, user_id: int | str) -> CartValidation:
        """Re-check every line against the catalog without changing the cart."""
        cart = await self.get_cart(user_id)
        invalid_items: list[str] = []
        details: list[CartLineCheck] = []

        for line in cart:
            kind, item = await self._lookup(line)
            check = CartLineCheck(id=line.id, valid=True)

            if kind is not None:
                check.type = kind
                check.menu_id = line.food_menu_id if kind == FOOD else line.beverage_menu_id
                check.name = item.name if item else "Unknown item"
                if item is None:
                    check.valid = False
                    check.reason = REASON_NOT_FOUND
                elif not item.is_active:
                    check.valid = False
                    check.reason = REASON_UNAVAILABLE

            if not check.valid:
                invalid_items.append(line.id)
            details.append(check)

        return CartValidation(valid=not invalid_items, invalid_items=invalid_items, details=details)

    async def migrate_cart_from_local(
        self,
        user_id: int | str,
        local_cart: list[CartItemInput],
    ) -> MigrationResult:
        """Merge a client-side cart into the server cart.

        Incoming lines whose item is missing or inactive are skipped; the
        number skipped is reported as ``dropped_count``.
        """
        cart = await self.get_cart(user_id)
        dropped = 0

        for item in local_cart:
            kind, menu_item = await self._lookup(item)
            if kind is None or menu_item is None or not menu_item.is_active:
                dropped += 1
                continue
            price = item.price or resolve_unit_price(menu_item, item.selected_price_type)
            self._merge_line(cart, kind, item, price)

        await self._save(user_id, cart)
        if dropped:
            logger.info(f"[CART] Dropped {dropped} invalid lines while migrating cart for user {user_id}")
        return MigrationResult(cart=cart, dropped_count=dropped)

    async def get_cart_item_count(self, user_id: int | str) -> int:
        cart = await self.get_cart(user_id)
        return sum(line.quantity for line in cart)
