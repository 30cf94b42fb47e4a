"""Delivery area registry.

Immutable table of delivery zones, landmarks and the classification boxes
used by the location validator and the delivery pricer. Built once at
startup and injected; tests substitute their own zones.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional

from cafe.models import (
    Bounds,
    DeliveryArea,
    GeoPoint,
    GPSReliability,
    Landmark,
    LandmarkDistance,
)
from cafe.utils.geo import haversine_distance_meters


@dataclass(frozen=True)
class DeliveryAreaRegistry:
    """Delivery zones plus the reference rectangles around them.

    Attributes:
        areas: Delivery zones in priority order (first match wins).
        landmarks: Reference points for location suggestions.
        country_bounds: Coarse rectangle of the serviceable country.
        urban_bounds: Innermost box classified as urban.
        mountain_exclusion_bounds: Points outside this box are mountain.
        core_area_name: Name of the core urban zone (slower riders).
    """

    areas: tuple[DeliveryArea, ...]
    landmarks: tuple[Landmark, ...] = ()
    country_bounds: Bounds = field(
        default_factory=lambda: Bounds(north=90, south=-90, east=180, west=-180)
    )
    urban_bounds: Optional[Bounds] = None
    mountain_exclusion_bounds: Optional[Bounds] = None
    core_area_name: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.areas:
            raise ValueError("registry needs at least one delivery area")
        # Accept lists from callers but keep the stored value immutable
        object.__setattr__(self, "areas", tuple(self.areas))
        object.__setattr__(self, "landmarks", tuple(self.landmarks))

    @classmethod
    def from_dicts(
        cls,
        areas: Iterable[dict],
        landmarks: Iterable[dict] = (),
        **kwargs,
    ) -> "DeliveryAreaRegistry":
        """Build a registry from plain configuration mappings."""
        return cls(
            areas=tuple(DeliveryArea.model_validate(area) for area in areas),
            landmarks=tuple(Landmark.model_validate(item) for item in landmarks),
            **kwargs,
        )

    def in_country(self, point: GeoPoint) -> bool:
        return self.country_bounds.contains(point)

    def containing_areas(self, point: GeoPoint) -> list[DeliveryArea]:
        """Areas whose bounding box contains the point."""
        return [area for area in self.areas if area.bounds.contains(point)]

    def find_delivery_area(self, point: GeoPoint) -> Optional[DeliveryArea]:
        """First area whose centre lies within its own service radius of the point.

        This is a radius test, not the bounding-box test used for validation;
        a point can sit inside some box and still match no area here.
        """
        for area in self.areas:
            distance = haversine_distance_meters(point, area.center_point)
            if distance <= area.max_delivery_radius_km * 1000:
                return area
        return None

    def is_core_area(self, area: Optional[DeliveryArea]) -> bool:
        return area is not None and area.name == self.core_area_name

    def nearest_landmarks(self, point: GeoPoint, radius_km: float) -> list[LandmarkDistance]:
        """Landmarks within ``radius_km`` of the point, closest first."""
        found = [
            LandmarkDistance(
                landmark=landmark,
                distance_meters=round(haversine_distance_meters(point, landmark.point)),
            )
            for landmark in self.landmarks
        ]
        nearby = [item for item in found if item.distance_meters <= radius_km * 1000]
        return sorted(nearby, key=lambda item: item.distance_meters)


LUANG_PRABANG_TOWN = "Luang Prabang town"
LUANG_PRABANG_OUTER = "Outer Luang Prabang"


DEFAULT_REGISTRY = DeliveryAreaRegistry(
    areas=(
        DeliveryArea(
            name=LUANG_PRABANG_TOWN,
            bounds=Bounds(north=19.95, south=19.8, east=102.25, west=102.05),
            center_point=GeoPoint(latitude=19.8845, longitude=102.135),
            max_delivery_radius_km=15,
            gps_reliability=GPSReliability.HIGH,
        ),
        DeliveryArea(
            name=LUANG_PRABANG_OUTER,
            bounds=Bounds(north=19.98, south=19.75, east=102.3, west=102.0),
            center_point=GeoPoint(latitude=19.885, longitude=102.14),
            max_delivery_radius_km=25,
            gps_reliability=GPSReliability.MEDIUM,
        ),
    ),
    landmarks=(
        Landmark(name="Wat Xieng Thong", point=GeoPoint(latitude=19.8853, longitude=102.1347)),
        Landmark(name="Royal Palace Museum", point=GeoPoint(latitude=19.8859, longitude=102.142)),
        Landmark(name="Morning Market", point=GeoPoint(latitude=19.8838, longitude=102.1358)),
        Landmark(name="Sisavangvong Road", point=GeoPoint(latitude=19.8847, longitude=102.1365)),
        Landmark(name="Mekong River Bridge", point=GeoPoint(latitude=19.892, longitude=102.138)),
    ),
    # Laos, approximately
    country_bounds=Bounds(north=22.5, south=13.9, east=107.7, west=100.0),
    urban_bounds=Bounds(north=19.92, south=19.82, east=102.18, west=102.1),
    mountain_exclusion_bounds=Bounds(north=19.98, south=19.78, east=102.28, west=102.02),
    core_area_name=LUANG_PRABANG_TOWN,
)
