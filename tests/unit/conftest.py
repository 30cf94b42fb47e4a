"""Shared fixtures for unit tests."""

import pytest

from cafe.models import MenuItem
from cafe.services import InMemoryCacheService, InMemoryMenuCatalog


class FakeClock:
    """Manually advanced time source for TTL tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> InMemoryCacheService:
    return InMemoryCacheService(clock=clock)


@pytest.fixture
def catalog() -> InMemoryMenuCatalog:
    return InMemoryMenuCatalog(
        food_items=[
            MenuItem(id=1, name="Khao Soi", price=35000, category="Noodles", image="khao-soi.jpg"),
            MenuItem(id=2, name="Laap", price=40000, status="inactive", category="Salads"),
            MenuItem(id=3, name="Sticky Rice", price=0.1, category="Sides"),
        ],
        beverage_items=[
            MenuItem(id=10, name="Lao Coffee", price=15000, hot_price=15000, ice_price=18000, category="Coffee"),
            MenuItem(id=11, name="Butterfly Pea Tea", price=None, category="Tea"),
        ],
    )
