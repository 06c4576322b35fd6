"""Reverse geocoding for video recording locations."""

from __future__ import annotations

from config.settings import GEOCODE_API_URL, GEOCODE_LOCALITY_LANGUAGE, GEOCODE_TIMEOUT_SECONDS

from .resolver import GeocodeUnavailable, ReverseGeocoder


def build_reverse_geocoder() -> ReverseGeocoder:
    return ReverseGeocoder(
        GEOCODE_API_URL,
        locality_language=GEOCODE_LOCALITY_LANGUAGE,
        timeout=GEOCODE_TIMEOUT_SECONDS,
    )


__all__ = ["GeocodeUnavailable", "ReverseGeocoder", "build_reverse_geocoder"]
