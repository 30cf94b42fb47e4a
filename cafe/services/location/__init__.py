"""Location service module.

Delivery area registry and GPS validation for customer locations.
"""

from .registry import (
    DEFAULT_REGISTRY,
    LUANG_PRABANG_OUTER,
    LUANG_PRABANG_TOWN,
    DeliveryAreaRegistry,
)
from .service import (
    ACCURACY_THRESHOLDS,
    ESTIMATED_ACCURACY,
    LocationValidator,
)

__all__ = [
    "DEFAULT_REGISTRY",
    "LUANG_PRABANG_OUTER",
    "LUANG_PRABANG_TOWN",
    "DeliveryAreaRegistry",
    "ACCURACY_THRESHOLDS",
    "ESTIMATED_ACCURACY",
    "LocationValidator",
]
