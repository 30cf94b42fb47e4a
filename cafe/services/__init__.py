"""Café backend services.

Service layer components:
- Cache: TTL key-value port with Redis and in-process backends
- Location: delivery area registry and GPS validation
- Delivery: distance, ETA and tiered fee quotes
- Menu: read-only menu catalog port (HTTP or in-memory)
- Cart: cache-backed shopping cart
- Session: cache-backed session directory and cleanup worker
"""

from .cache import CacheService, InMemoryCacheService, RedisCacheService, create_cache_service
from .location import DEFAULT_REGISTRY, DeliveryAreaRegistry, LocationValidator
from .delivery import DeliveryPricer, DeliverySettingsProvider, FeeSchedule, quote_from_store
from .menu import HttpMenuCatalog, InMemoryMenuCatalog, MenuCatalog
from .cart import CartService
from .session import CacheSessionRegistry, SessionCleanupWorker, SessionRegistry

__all__ = [
    # Cache
    "CacheService",
    "InMemoryCacheService",
    "RedisCacheService",
    "create_cache_service",
    # Location
    "DEFAULT_REGISTRY",
    "DeliveryAreaRegistry",
    "LocationValidator",
    # Delivery
    "DeliveryPricer",
    "DeliverySettingsProvider",
    "FeeSchedule",
    "quote_from_store",
    # Menu
    "HttpMenuCatalog",
    "InMemoryMenuCatalog",
    "MenuCatalog",
    # Cart
    "CartService",
    # Session
    "CacheSessionRegistry",
    "SessionCleanupWorker",
    "SessionRegistry",
]
