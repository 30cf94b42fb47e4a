"""Café ordering backend: delivery geolocation, cart and session core."""

__version__ = "0.1.0"
