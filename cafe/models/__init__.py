"""Pydantic models and error types."""

from .core import (
    AreaType,
    Bounds,
    CartItemInput,
    CartLine,
    CartLineCheck,
    CartLineDetails,
    CartLineOptions,
    CartSummary,
    CartValidation,
    Confidence,
    DeliveryArea,
    DistanceQuote,
    GeoPoint,
    GPSReading,
    GPSReliability,
    Landmark,
    LandmarkDistance,
    LocationAdjustment,
    LocationAssessment,
    LocationSuggestion,
    MenuItem,
    MenuStatus,
    MigrationResult,
    PriceType,
    SessionEntry,
    UserSession,
)
from .errors import (
    AppError,
    CafeError,
    ErrorCode,
    Forbidden,
    InaccurateGPS,
    InvalidLocation,
    NotFound,
)

__all__ = [
    "AreaType",
    "Bounds",
    "CartItemInput",
    "CartLine",
    "CartLineCheck",
    "CartLineDetails",
    "CartLineOptions",
    "CartSummary",
    "CartValidation",
    "Confidence",
    "DeliveryArea",
    "DistanceQuote",
    "GeoPoint",
    "GPSReading",
    "GPSReliability",
    "Landmark",
    "LandmarkDistance",
    "LocationAdjustment",
    "LocationAssessment",
    "LocationSuggestion",
    "MenuItem",
    "MenuStatus",
    "MigrationResult",
    "PriceType",
    "SessionEntry",
    "UserSession",
    # Errors
    "AppError",
    "CafeError",
    "ErrorCode",
    "Forbidden",
    "InaccurateGPS",
    "InvalidLocation",
    "NotFound",
]
