"""Menu catalog service.

Read-only access to food and beverage menu items. The catalog itself lives
in the products service; the cart only needs name, prices, image, category
and the ``status`` availability flag.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Iterable, Optional

import httpx

from cafe.models import MenuItem

logger = logging.getLogger(__name__)


class MenuCatalog(ABC):
    """Abstract base class for menu catalog lookups."""

    @abstractmethod
    async def find_food_item(self, item_id: int) -> Optional[MenuItem]:
        """Look up a food menu item, or None if it does not exist."""
        pass

    @abstractmethod
    async def find_beverage_item(self, item_id: int) -> Optional[MenuItem]:
        """Look up a beverage menu item, or None if it does not exist."""
        pass


class InMemoryMenuCatalog(MenuCatalog):
    """Catalog backed by dictionaries, for local development and tests."""

    def __init__(
        self,
        food_items: Iterable[MenuItem] = (),
        beverage_items: Iterable[MenuItem] = (),
    ) -> None:
        self._food = {item.id: item for item in food_items}
        self._beverages = {item.id: item for item in beverage_items}

    async def find_food_item(self, item_id: int) -> Optional[MenuItem]:
        return self._food.get(item_id)

    async def find_beverage_item(self, item_id: int) -> Optional[MenuItem]:
        return self._beverages.get(item_id)

    def put_food_item(self, item: MenuItem) -> None:
        self._food[item.id] = item

    def put_beverage_item(self, item: MenuItem) -> None:
        self._beverages[item.id] = item


class HttpMenuCatalog(MenuCatalog):
    """Menu catalog client for the products REST API.

    Uses a shared httpx client with connection pooling. A 404 means the
    item does not exist; other HTTP errors propagate to the caller.
    """

    FOOD_PATH = "/food-menu/{id}"
    BEVERAGE_PATH = "/beverage-menu/{id}"

    HEADERS = {
        "User-Agent": "CafeBackend/1.0",
        "Accept": "application/json",
    }

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the shared HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                headers=self.HEADERS,
                limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _fetch(self, path: str, item_id: int) -> Optional[MenuItem]:
        client = self._get_client()
        response = await client.get(path.format(id=item_id))
        if response.status_code == 404:
            logger.info(f"[MENU] {path.format(id=item_id)} not found")
            return None
        response.raise_for_status()
        payload = response.json()
        # Some endpoints wrap the entity in {"data": {...}}
        if isinstance(payload, dict) and isinstance(payload.get("data"), dict):
            payload = payload["data"]
        return self._to_menu_item(payload, item_id)

    @staticmethod
    def _to_menu_item(payload: dict[str, Any], item_id: int) -> MenuItem:
        category = payload.get("category")
        if isinstance(category, dict):
            category = category.get("name")
        return MenuItem(
            id=payload.get("id", item_id),
            name=payload.get("name") or "Unknown Item",
            price=payload.get("price"),
            hot_price=payload.get("hot_price"),
            ice_price=payload.get("ice_price"),
            image=payload.get("image"),
            status=payload.get("status") or "inactive",
            category=category,
        )

    async def find_food_item(self, item_id: int) -> Optional[MenuItem]:
        return await self._fetch(self.FOOD_PATH, item_id)

    async def find_beverage_item(self, item_id: int) -> Optional[MenuItem]:
        return await self._fetch(self.BEVERAGE_PATH, item_id)
