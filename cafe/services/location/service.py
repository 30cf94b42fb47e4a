"""Location validator service.

Validates raw GPS readings against the serviceable country and the delivery
area boxes, classifies the surroundings (urban / rural / mountain) to judge
GPS accuracy, and offers landmark-based hints for imprecise fixes.

Validation order, each step aborting the rest:
1. Latitude/longitude numeric range
2. Country rectangle
3. Any delivery area bounding box
"""

import logging
from typing import Optional

from cafe.models import (
    AreaType,
    Confidence,
    GeoPoint,
    GPSReading,
    InaccurateGPS,
    InvalidLocation,
    LandmarkDistance,
    LocationAdjustment,
    LocationAssessment,
    LocationSuggestion,
)
from cafe.services.location.registry import DEFAULT_REGISTRY, DeliveryAreaRegistry
from cafe.utils.geo import move_towards

logger = logging.getLogger(__name__)


# Expected accuracy (meters) when the client does not report one
ESTIMATED_ACCURACY: dict[AreaType, float] = {
    AreaType.URBAN: 5,
    AreaType.RURAL: 15,
    AreaType.MOUNTAIN: 50,
    AreaType.UNKNOWN: 25,
}

# Worst accuracy (meters) still considered usable
ACCURACY_THRESHOLDS: dict[AreaType, float] = {
    AreaType.URBAN: 10,
    AreaType.RURAL: 25,
    AreaType.MOUNTAIN: 100,
    AreaType.UNKNOWN: 30,
}

ADJUSTMENT_FACTOR = 0.3
SUGGESTION_RADIUS_KM = 1.0
MAX_SUGGESTED_LANDMARKS = 3

POOR_GPS_REASON = "Location adjusted for an area with weak GPS signal"
GOOD_GPS_REASON = "GPS location is accurate"
CHECK_GPS_MESSAGE = "Please check your GPS location or add more address details"


class LocationValidator:
    """Validates GPS fixes against a delivery area registry.

    Stateless: every method is a pure function of its arguments and the
    injected registry.
    """

    def __init__(self, registry: DeliveryAreaRegistry = DEFAULT_REGISTRY) -> None:
        self._registry = registry

    @property
    def registry(self) -> DeliveryAreaRegistry:
        return self._registry

    def validate(self, point: GeoPoint, accuracy: Optional[float] = None) -> GPSReading:
        """Validate a GPS reading and judge its accuracy.

        Args:
            point: Raw coordinates reported by the device.
            accuracy: Reported accuracy radius in meters. Estimated from the
                area type when omitted.

        Returns:
            The assembled GPS reading.

        Raises:
            InvalidLocation: If the point is out of range, outside the
                country, or outside every delivery area box.
        """
        lat, lng = point.latitude, point.longitude

        if not -90 <= lat <= 90:
            raise InvalidLocation("Latitude must be between -90 and 90", lat, lng)
        if not -180 <= lng <= 180:
            raise InvalidLocation("Longitude must be between -180 and 180", lat, lng)

        if not self._registry.in_country(point):
            raise InvalidLocation("Location is outside the serviceable country", lat, lng)

        if not self._registry.containing_areas(point):
            bounds = [area.bounds.model_dump() for area in self._registry.areas]
            logger.info(f"[LOCATION] Validation failed: lat={lat}, lng={lng}, service bounds={bounds}")
            raise InvalidLocation("Location is outside the delivery service area", lat, lng)

        area_type = self.determine_area_type(point)
        # A reported accuracy of 0 is treated as missing
        gps_accuracy = accuracy if accuracy else ESTIMATED_ACCURACY[area_type]

        return GPSReading(
            point=point,
            accuracy=gps_accuracy,
            area_type=area_type,
            is_accurate=self.is_gps_accurate(gps_accuracy, area_type),
        )

    def determine_area_type(self, point: GeoPoint) -> AreaType:
        """Classify the surroundings: urban box first, then mountain, else rural."""
        urban = self._registry.urban_bounds
        wider = self._registry.mountain_exclusion_bounds
        if urban is None or wider is None:
            return AreaType.UNKNOWN

        if urban.contains(point):
            return AreaType.URBAN
        if not wider.contains(point):
            return AreaType.MOUNTAIN
        return AreaType.RURAL

    @staticmethod
    def is_gps_accurate(accuracy: float, area_type: AreaType) -> bool:
        return accuracy <= ACCURACY_THRESHOLDS.get(area_type, ACCURACY_THRESHOLDS[AreaType.UNKNOWN])

    def find_nearby_landmarks(self, point: GeoPoint, radius_km: float = 2) -> list[LandmarkDistance]:
        """Landmarks within ``radius_km``, closest first."""
        return self._registry.nearest_landmarks(point, radius_km)

    def suggest_better_location(self, point: GeoPoint) -> LocationSuggestion:
        """Point the user to the closest landmark within 1 km, if any."""
        nearby = self.find_nearby_landmarks(point, SUGGESTION_RADIUS_KM)
        if nearby:
            closest = nearby[0]
            return LocationSuggestion(
                suggestion=(
                    f"Your location is near {closest.landmark.name} "
                    f"(about {closest.distance_meters} meters away)"
                ),
                landmarks=nearby[:MAX_SUGGESTED_LANDMARKS],
            )
        return LocationSuggestion(suggestion=CHECK_GPS_MESSAGE, landmarks=[])

    def adjust_location_for_poor_gps(self, point: GeoPoint) -> LocationAdjustment:
        """Nudge rural/mountain fixes 30% toward the serving area's centre.

        The target area comes from the radius match used for pricing, so a
        fix outside every bounding box can still be pulled in. A smoothing
        heuristic only; the adjusted point is no more than a better guess.
        """
        area_type = self.determine_area_type(point)

        if area_type in (AreaType.MOUNTAIN, AreaType.RURAL):
            area = self._registry.find_delivery_area(point)
            if area is not None:
                adjusted = move_towards(point, area.center_point, ADJUSTMENT_FACTOR)
                logger.info(
                    f"[LOCATION] Adjusted {area_type.value} fix ({point.latitude}, {point.longitude}) "
                    f"toward {area.name}"
                )
                return LocationAdjustment(
                    original_location=point,
                    adjusted_location=adjusted,
                    reason=POOR_GPS_REASON,
                    confidence=Confidence.MEDIUM,
                )

        return LocationAdjustment(
            original_location=point,
            adjusted_location=point,
            reason=GOOD_GPS_REASON,
            confidence=Confidence.HIGH,
        )

    def assess(
        self,
        point: GeoPoint,
        accuracy: Optional[float] = None,
        force: bool = False,
    ) -> LocationAssessment:
        """Validate a fix and decide which point should be stored.

        Args:
            point: Raw coordinates.
            accuracy: Reported accuracy in meters.
            force: Accept an inaccurate fix instead of asking for a better one.

        Raises:
            InvalidLocation: If validation fails.
            InaccurateGPS: If the fix is too imprecise and ``force`` is False.
        """
        reading = self.validate(point, accuracy)

        if not reading.is_accurate and not force:
            raise InaccurateGPS(reading, self.suggest_better_location(point))

        adjustment = self.adjust_location_for_poor_gps(point)
        return LocationAssessment(
            reading=reading,
            adjustment=adjustment,
            final_location=adjustment.adjusted_location,
        )
