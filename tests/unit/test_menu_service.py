"""Unit tests for the menu catalog service."""

import httpx
import pytest

from cafe.models import MenuItem
from cafe.services.menu import HttpMenuCatalog, InMemoryMenuCatalog


def make_transport(routes: dict[str, httpx.Response], seen: list[httpx.Request] | None = None) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return routes.get(request.url.path, httpx.Response(404, json={"message": "Not found"}))

    return httpx.MockTransport(handler)


class TestInMemoryMenuCatalog:
    @pytest.mark.asyncio
    async def test_lookup(self, catalog: InMemoryMenuCatalog) -> None:
        item = await catalog.find_food_item(1)
        assert item is not None
        assert item.name == "Khao Soi"
        assert await catalog.find_food_item(10) is None
        assert (await catalog.find_beverage_item(10)).ice_price == 18000

    @pytest.mark.asyncio
    async def test_put_replaces(self, catalog: InMemoryMenuCatalog) -> None:
        catalog.put_food_item(MenuItem(id=1, name="Khao Soi", price=30000, status="inactive"))
        item = await catalog.find_food_item(1)
        assert item.price == 30000
        assert item.is_active is False


class TestHttpMenuCatalog:
    """Tests for the products API client using a mock transport."""

    @pytest.mark.asyncio
    async def test_fetches_food_item(self) -> None:
        seen: list[httpx.Request] = []
        transport = make_transport(
            {
                "/api/food-menu/1": httpx.Response(
                    200,
                    json={
                        "id": 1,
                        "name": "Khao Soi",
                        "price": "35000.00",
                        "image": "khao-soi.jpg",
                        "status": "active",
                        "category": {"id": 3, "name": "Noodles"},
                    },
                )
            },
            seen,
        )
        catalog = HttpMenuCatalog("http://products.local/api/", transport=transport)
        item = await catalog.find_food_item(1)
        await catalog.close()

        assert item == MenuItem(
            id=1, name="Khao Soi", price=35000, image="khao-soi.jpg", status="active", category="Noodles"
        )
        assert seen[0].headers["accept"] == "application/json"

    @pytest.mark.asyncio
    async def test_unwraps_data_envelope(self) -> None:
        transport = make_transport(
            {
                "/beverage-menu/10": httpx.Response(
                    200,
                    json={
                        "data": {
                            "id": 10,
                            "name": "Lao Coffee",
                            "price": 15000,
                            "hot_price": 15000,
                            "ice_price": 18000,
                            "status": "active",
                            "category": "Coffee",
                        }
                    },
                )
            }
        )
        catalog = HttpMenuCatalog("http://products.local", transport=transport)
        item = await catalog.find_beverage_item(10)
        await catalog.close()

        assert item is not None
        assert item.ice_price == 18000
        assert item.category == "Coffee"
        assert item.is_active is True

    @pytest.mark.asyncio
    async def test_missing_item_returns_none(self) -> None:
        catalog = HttpMenuCatalog("http://products.local", transport=make_transport({}))
        assert await catalog.find_food_item(99) is None
        await catalog.close()

    @pytest.mark.asyncio
    async def test_missing_status_is_inactive(self) -> None:
        transport = make_transport(
            {"/food-menu/5": httpx.Response(200, json={"id": 5, "name": "Or Lam", "price": 30000})}
        )
        catalog = HttpMenuCatalog("http://products.local", transport=transport)
        item = await catalog.find_food_item(5)
        await catalog.close()
        assert item.is_active is False

    @pytest.mark.asyncio
    async def test_server_error_propagates(self) -> None:
        transport = make_transport({"/food-menu/1": httpx.Response(503)})
        catalog = HttpMenuCatalog("http://products.local", transport=transport)
        with pytest.raises(httpx.HTTPStatusError):
            await catalog.find_food_item(1)
        await catalog.close()

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self) -> None:
        catalog = HttpMenuCatalog("http://products.local", transport=make_transport({}))
        await catalog.find_food_item(1)
        await catalog.close()
        await catalog.close()
        assert catalog._client is None
