"""Expose constructed client wrappers."""

from .earth_engine import EarthEngineError, EarthEngineOracle
from .geocoding import Coordinates, GeocodingError, OpenCageGeocoder
from .sqlite_store import SQLiteStore

__all__ = [
    "Coordinates",
    "EarthEngineError",
    "EarthEngineOracle",
    "GeocodingError",
    "OpenCageGeocoder",
    "SQLiteStore",
]
