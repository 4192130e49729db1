"""Geocoding client backed by the OpenCage API."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from damwatch.core.config import GeocodingSettings
from damwatch.utils.http import RetryConfig, request_with_retry

logger = logging.getLogger(__name__)


class GeocodingError(RuntimeError):
    """Raised when the geocoding service cannot be reached or rejects a query."""


@dataclass(frozen=True, slots=True)
class Coordinates:
    lat: float
    lon: float

    def to_payload(self) -> Dict[str, float]:
        return {"lat": self.lat, "lon": self.lon}


class OpenCageGeocoder:
    """Resolve a place name to the best-ranked coordinates."""

    def __init__(
        self,
        settings: GeocodingSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport

    def build_query(self, name: str) -> str:
        suffix = self._settings.query_suffix
        if suffix and not name.lower().endswith(suffix.lower()):
            return f"{name}{suffix}"
        return name

    async def geocode(self, name: str) -> Optional[Coordinates]:
        """Return coordinates for ``name`` or ``None`` when nothing matched."""
        params: Dict[str, Any] = {
            "q": self.build_query(name),
            "key": self._settings.api_key,
            "limit": 1,
            "no_annotations": 1,
        }
        if self._settings.country_code:
            params["countrycode"] = self._settings.country_code

        try:
            async with httpx.AsyncClient(
                timeout=self._settings.timeout_seconds, transport=self._transport
            ) as client:
                response = await request_with_retry(
                    client.get,
                    str(self._settings.base_url),
                    params=params,
                    retry_config=RetryConfig(attempts=self._settings.retry_attempts),
                )
        except httpx.HTTPError as exc:
            raise GeocodingError(f"Geocoding request failed: {exc}") from exc

        results = response.json().get("results") or []
        if not results:
            logger.info("No geocoding candidates for %r", params["q"])
            return None

        geometry = results[0].get("geometry") or {}
        if "lat" not in geometry or "lng" not in geometry:
            return None
        return Coordinates(lat=float(geometry["lat"]), lon=float(geometry["lng"]))


__all__ = ["Coordinates", "GeocodingError", "OpenCageGeocoder"]
