"""Delivery pricing service.

Computes distance, estimated delivery time and the tiered delivery fee
between the store and a customer location.

Known quirk kept for compatibility: the fee uses the radius-from-centre
area match, while location validation uses bounding boxes. A destination
that passes validation but lies outside every area radius is quoted with
``is_within_delivery_area=False`` and a fee of 0.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional

from cafe.models import DeliveryArea, DistanceQuote, GeoPoint
from cafe.services.cache import CacheService
from cafe.services.location import DEFAULT_REGISTRY, DeliveryAreaRegistry
from cafe.utils.geo import haversine_distance_meters

logger = logging.getLogger(__name__)

BASE_HANDLING_MINUTES = 15
CORE_AREA_SPEED_KMH = 20
OUTER_AREA_SPEED_KMH = 30

STORE_LATITUDE_SETTING = "restaurant_latitude"
STORE_LONGITUDE_SETTING = "restaurant_longitude"


@dataclass(frozen=True)
class FeeSchedule:
    """Distance-tiered delivery fee in LAK.

    Attributes:
        base_fee: Fee charged for every matched delivery.
        tiers: (max_km, surcharge) pairs; inclusive upper bounds, ascending.
        beyond_surcharge: Surcharge past the last tier.
    """

    base_fee: int = 6000
    tiers: tuple[tuple[float, int], ...] = (
        (3, 0),
        (6, 3000),
        (12, 8000),
        (20, 12000),
    )
    beyond_surcharge: int = 18000

    def fee_for(self, distance_km: float, area: Optional[DeliveryArea]) -> int:
        if area is None:
            return 0
        for max_km, surcharge in self.tiers:
            if distance_km <= max_km:
                return self.base_fee + surcharge
        return self.base_fee + self.beyond_surcharge


def format_distance(distance_meters: int) -> str:
    return f"{distance_meters / 1000:.1f} km"


def format_fee(fee: int) -> str:
    return f"{fee:,} LAK"


class DeliveryPricer:
    """Quotes deliveries against an injected area registry and fee schedule."""

    def __init__(
        self,
        registry: DeliveryAreaRegistry = DEFAULT_REGISTRY,
        fee_schedule: FeeSchedule = FeeSchedule(),
    ) -> None:
        self._registry = registry
        self._fees = fee_schedule

    def estimate_minutes(self, distance_km: float, area: Optional[DeliveryArea]) -> int:
        avg_speed = CORE_AREA_SPEED_KMH if self._registry.is_core_area(area) else OUTER_AREA_SPEED_KMH
        return math.ceil(BASE_HANDLING_MINUTES + (distance_km / avg_speed) * 60)

    def quote(self, origin: GeoPoint, destination: GeoPoint) -> DistanceQuote:
        """Price a delivery from ``origin`` (store) to ``destination`` (customer).

        Pure with respect to its inputs and the registry; the caller decides
        whether to persist the quote on an order.
        """
        distance = haversine_distance_meters(origin, destination)
        distance_km = distance / 1000
        area = self._registry.find_delivery_area(destination)

        estimated_minutes = self.estimate_minutes(distance_km, area)
        fee = self._fees.fee_for(distance_km, area)
        distance_meters = math.floor(distance + 0.5)

        if area is None:
            logger.warning(
                f"[DELIVERY] No delivery area radius covers ({destination.latitude}, "
                f"{destination.longitude}); quoting fee 0"
            )
        logger.info(f"[DELIVERY] Distance calculation: {distance_meters}m, {estimated_minutes}min, {fee} LAK")

        return DistanceQuote(
            distance_meters=distance_meters,
            estimated_minutes=estimated_minutes,
            is_within_delivery_area=area is not None,
            fee_amount=fee,
            area_name=area.name if area else None,
            formatted_distance=format_distance(distance_meters),
            formatted_fee=format_fee(fee),
        )


class DeliverySettingsProvider:
    """Resolves the store location from cached system settings.

    The settings collaborator owns ``setting:{key}`` entries; when they are
    missing or malformed the configured defaults are used.
    """

    def __init__(self, cache: CacheService, default_origin: GeoPoint) -> None:
        self._cache = cache
        self._default_origin = default_origin

    async def _read_float(self, key: str, default: float) -> float:
        value = await self._cache.get(CacheService.build_setting_key(key))
        if value is None:
            return default
        try:
            return float(value)
        except (TypeError, ValueError):
            logger.warning(f"[DELIVERY] Ignoring malformed setting {key}={value!r}")
            return default

    async def get_store_location(self) -> GeoPoint:
        return GeoPoint(
            latitude=await self._read_float(STORE_LATITUDE_SETTING, self._default_origin.latitude),
            longitude=await self._read_float(STORE_LONGITUDE_SETTING, self._default_origin.longitude),
        )


async def quote_from_store(
    pricer: DeliveryPricer,
    settings_provider: DeliverySettingsProvider,
    destination: GeoPoint,
) -> DistanceQuote:
    """Quote a delivery from the configured store location."""
    origin = await settings_provider.get_store_location()
    return pricer.quote(origin, destination)
