"""Core data models for the café backend.

This module contains the Pydantic models shared by the delivery, cart and
session services: coordinates, delivery areas, GPS readings, distance
quotes, cart lines, menu items and user sessions.

Cart lines are stored in the shared cache with camelCase keys so that any
other component reading ``cart:{userId}`` sees the same layout.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class AreaType(str, Enum):
    """Surroundings classification used to judge GPS quality."""

    URBAN = "urban"
    RURAL = "rural"
    MOUNTAIN = "mountain"
    UNKNOWN = "unknown"


class GPSReliability(str, Enum):
    """Expected satellite-signal quality inside a delivery area."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Confidence(str, Enum):
    """Confidence attached to a (possibly adjusted) location."""

    HIGH = "high"
    MEDIUM = "medium"


class PriceType(str, Enum):
    """Beverage serving variant, each with its own price."""

    HOT = "hot"
    ICE = "ice"


class MenuStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class GeoPoint(BaseModel):
    """Immutable latitude/longitude pair.

    No range constraints here: the location validator reports out-of-range
    readings as ``InvalidLocation`` carrying the rejected coordinates.
    """

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., description="Latitude in degrees")
    longitude: float = Field(..., description="Longitude in degrees")


class Bounds(BaseModel):
    """Axis-aligned latitude/longitude rectangle (inclusive edges)."""

    model_config = ConfigDict(frozen=True)

    north: float
    south: float
    east: float
    west: float

    def contains(self, point: GeoPoint) -> bool:
        return (
            self.south <= point.latitude <= self.north
            and self.west <= point.longitude <= self.east
        )


class DeliveryArea(BaseModel):
    """Named delivery zone with a bounding box and a service radius."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    bounds: Bounds
    center_point: GeoPoint
    max_delivery_radius_km: float = Field(..., gt=0)
    gps_reliability: GPSReliability = GPSReliability.MEDIUM


class Landmark(BaseModel):
    """Well-known reference point used for human-readable suggestions."""

    model_config = ConfigDict(frozen=True)

    name: str
    point: GeoPoint


class LandmarkDistance(BaseModel):
    landmark: Landmark
    distance_meters: int = Field(..., ge=0)


class GPSReading(BaseModel):
    """Result of validating a raw GPS fix."""

    point: GeoPoint
    accuracy: float = Field(..., description="Accuracy radius in meters")
    area_type: AreaType
    is_accurate: bool


class LocationSuggestion(BaseModel):
    suggestion: str
    landmarks: list[LandmarkDistance] = Field(default_factory=list)


class LocationAdjustment(BaseModel):
    original_location: GeoPoint
    adjusted_location: GeoPoint
    reason: str
    confidence: Confidence


class LocationAssessment(BaseModel):
    """Validated reading plus the point that should actually be stored."""

    reading: GPSReading
    adjustment: LocationAdjustment
    final_location: GeoPoint


class DistanceQuote(BaseModel):
    """Distance, ETA and fee between the store and a customer.

    Not persisted; the order flow snapshots it onto the order record.
    """

    distance_meters: int = Field(..., ge=0)
    estimated_minutes: int = Field(..., ge=0)
    is_within_delivery_area: bool
    fee_amount: int = Field(..., ge=0, description="Delivery fee in LAK")
    area_name: Optional[str] = None
    formatted_distance: str = ""
    formatted_fee: str = ""


class CamelModel(BaseModel):
    """Base for models persisted in the cache with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CartLineOptions(CamelModel):
    price_type: Optional[PriceType] = None


class CartItemInput(CamelModel):
    """A line as submitted by a client (add to cart or local cart migration)."""

    food_menu_id: Optional[int] = None
    beverage_menu_id: Optional[int] = None
    quantity: int = Field(1, ge=1)
    notes: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    price_type: Optional[PriceType] = None
    options: Optional[CartLineOptions] = None

    @property
    def selected_price_type(self) -> Optional[PriceType]:
        if self.price_type is not None:
            return self.price_type
        if self.options is not None:
            return self.options.price_type
        return None


class CartLine(CamelModel):
    """One product entry inside a user's cart."""

    id: str
    food_menu_id: Optional[int] = None
    beverage_menu_id: Optional[int] = None
    quantity: int = Field(..., ge=1)
    notes: Optional[str] = None
    price: Optional[float] = None
    options: Optional[CartLineOptions] = None

    @property
    def price_type(self) -> Optional[PriceType]:
        return self.options.price_type if self.options else None


class CartLineDetails(CartLine):
    """Cart line enriched with catalog name, price, image and category."""

    name: str = "Unknown Item"
    image: Optional[str] = None
    category: Optional[str] = None


class CartSummary(CamelModel):
    items: list[CartLineDetails] = Field(default_factory=list)
    total_items: int = 0
    subtotal: float = 0.0


class CartLineCheck(CamelModel):
    id: str
    valid: bool
    type: Optional[str] = None
    menu_id: Optional[int] = None
    name: Optional[str] = None
    reason: Optional[str] = None


class CartValidation(CamelModel):
    valid: bool
    invalid_items: list[str] = Field(default_factory=list)
    details: list[CartLineCheck] = Field(default_factory=list)


class MigrationResult(CamelModel):
    """Server cart after merging a client cart.

    ``dropped_count`` is the number of incoming lines discarded because their
    menu item was missing or inactive.
    """

    cart: list[CartLine] = Field(default_factory=list)
    dropped_count: int = 0


class MenuItem(BaseModel):
    """Catalog entry for a food or beverage menu item."""

    id: int
    name: str
    price: Optional[float] = None
    hot_price: Optional[float] = None
    ice_price: Optional[float] = None
    image: Optional[str] = None
    status: str = MenuStatus.ACTIVE.value
    category: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status == MenuStatus.ACTIVE.value


class UserSession(BaseModel):
    """Session blob stored under ``session:{sessionId}``.

    Extra user-display fields written by the login flow are preserved.
    """

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    id: str = Field(..., description="Owning user id")
    role: Optional[str] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    last_active: Optional[str] = Field(None, description="ISO-8601 timestamp")


class SessionEntry(BaseModel):
    session_id: str
    user_data: UserSession
