"""Cart service module."""

from .service import (
    CART_TTL_SECONDS,
    REASON_NOT_FOUND,
    REASON_UNAVAILABLE,
    CartService,
    generate_line_id,
    resolve_unit_price,
)

__all__ = [
    "CART_TTL_SECONDS",
    "REASON_NOT_FOUND",
    "REASON_UNAVAILABLE",
    "CartService",
    "generate_line_id",
    "resolve_unit_price",
]
