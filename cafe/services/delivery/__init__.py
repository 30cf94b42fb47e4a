"""Delivery pricing module."""

from .service import (
    DeliveryPricer,
    DeliverySettingsProvider,
    FeeSchedule,
    format_distance,
    format_fee,
    quote_from_store,
)

__all__ = [
    "DeliveryPricer",
    "DeliverySettingsProvider",
    "FeeSchedule",
    "format_distance",
    "format_fee",
    "quote_from_store",
]
