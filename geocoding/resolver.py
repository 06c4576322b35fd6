"""Reverse geocoding of recording coordinates into city/country labels."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Dict, Optional

import requests
from pydantic import ValidationError

from video_cache.models import Location

logger = logging.getLogger(__name__)


class GeocodeUnavailable(RuntimeError):
    """Raised when a coordinate pair cannot be resolved to a place name."""


class ReverseGeocoder:
    """Client for the BigDataCloud reverse-geocode endpoint."""

    def __init__(
        self,
        api_url: str,
        *,
        locality_language: str = "en",
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
        cache_size: int = 1000,
    ):
        self._api_url = api_url
        self._locality_language = locality_language
        self._timeout = timeout
        self._session = session
        self._lookup = lru_cache(maxsize=cache_size)(self._request_location)

    def resolve(self, latitude: float, longitude: float) -> Location:
        """Return the location for the coordinates or raise GeocodeUnavailable."""
        if not (-90.0 <= latitude <= 90.0) or not (-180.0 <= longitude <= 180.0):
            raise GeocodeUnavailable(f"Coordinates out of range: {latitude}, {longitude}")
        return self._lookup(latitude, longitude)

    def _request_location(self, latitude: float, longitude: float) -> Location:
        params = {
            "latitude": latitude,
            "longitude": longitude,
            "localityLanguage": self._locality_language,
        }
        getter = self._session.get if self._session is not None else requests.get
        try:
            response = getter(self._api_url, params=params, timeout=self._timeout)
            response.raise_for_status()
            payload: Dict[str, Any] = response.json()
        except requests.RequestException as exc:
            raise GeocodeUnavailable(f"Reverse geocoding failed for ({latitude}, {longitude}): {exc}") from exc
        except ValueError as exc:
            raise GeocodeUnavailable(f"Reverse geocoding returned invalid JSON for ({latitude}, {longitude})") from exc
        if not isinstance(payload, dict):
            raise GeocodeUnavailable(f"Unexpected reverse geocoding payload for ({latitude}, {longitude})")

        try:
            location = Location(
                city=payload.get("city") or payload.get("locality") or "",
                country=payload.get("countryName") or "",
                latitude=latitude,
                longitude=longitude,
            )
        except ValidationError as exc:
            raise GeocodeUnavailable(f"Malformed reverse geocoding payload for ({latitude}, {longitude})") from exc
        logger.debug("Geocoded (%s, %s) -> %s, %s", latitude, longitude, location.city, location.country)
        return location


__all__ = ["GeocodeUnavailable", "ReverseGeocoder"]
