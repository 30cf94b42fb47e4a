"""Geospatial helper functions."""

from __future__ import annotations

import math

from cafe.models import GeoPoint

EARTH_RADIUS_METERS = 6_371_000.0


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute the great-circle distance in meters between two coordinates."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_METERS * c


def haversine_distance_meters(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance in meters between two points."""

    return haversine_distance(a.latitude, a.longitude, b.latitude, b.longitude)


def destination_point(origin: GeoPoint, bearing: float, distance_meters: float) -> GeoPoint:
    """Point reached by travelling ``distance_meters`` from ``origin`` along ``bearing``."""

    delta = distance_meters / EARTH_RADIUS_METERS
    theta = math.radians(bearing)
    phi1 = math.radians(origin.latitude)
    lambda1 = math.radians(origin.longitude)

    phi2 = math.asin(
        math.sin(phi1) * math.cos(delta) + math.cos(phi1) * math.sin(delta) * math.cos(theta)
    )
    lambda2 = lambda1 + math.atan2(
        math.sin(theta) * math.sin(delta) * math.cos(phi1),
        math.cos(delta) - math.sin(phi1) * math.sin(phi2),
    )
    longitude = (math.degrees(lambda2) + 540) % 360 - 180
    return GeoPoint(latitude=math.degrees(phi2), longitude=longitude)


def move_towards(point: GeoPoint, target: GeoPoint, fraction: float) -> GeoPoint:
    """Linear interpolation in degree space, ``fraction`` of the way to ``target``."""

    return GeoPoint(
        latitude=point.latitude + (target.latitude - point.latitude) * fraction,
        longitude=point.longitude + (target.longitude - point.longitude) * fraction,
    )
