"""Menu catalog module."""

from .service import HttpMenuCatalog, InMemoryMenuCatalog, MenuCatalog

__all__ = [
    "HttpMenuCatalog",
    "InMemoryMenuCatalog",
    "MenuCatalog",
]
