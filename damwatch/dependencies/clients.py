"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

from functools import lru_cache

from damwatch.clients import EarthEngineOracle, OpenCageGeocoder, SQLiteStore
from damwatch.core.config import AppSettings, get_settings
from damwatch.services import DamRegistry, RangeComparisonService
from workflows.dam_analysis.orchestrator import AnalysisOrchestrator
from workflows.dam_analysis.stages import AnalysisStages


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


def get_app_settings() -> AppSettings:
    """FastAPI dependency returning application settings."""
    return _settings()


@lru_cache()
def get_sqlite_store() -> SQLiteStore:
    """Provide shared SQLite record store."""
    settings = _settings()
    return SQLiteStore(settings.database_path)


@lru_cache()
def get_dam_registry() -> DamRegistry:
    """Load the dam registry once per process."""
    settings = _settings()
    return DamRegistry.from_file(settings.dam_registry_path)


@lru_cache()
def get_geocoder() -> OpenCageGeocoder:
    """Provide the OpenCage geocoding client."""
    settings = _settings()
    return OpenCageGeocoder(settings.geocoding)


@lru_cache()
def get_oracle() -> EarthEngineOracle:
    """Provide the Earth Engine analysis oracle."""
    settings = _settings()
    return EarthEngineOracle(settings.earth_engine)


@lru_cache()
def get_analysis_orchestrator() -> AnalysisOrchestrator:
    """Build the staged analysis workflow over the shared collaborators."""
    settings = _settings()
    stages = AnalysisStages(
        geocoder=get_geocoder(),
        oracle=get_oracle(),
        registry=get_dam_registry(),
        store=get_sqlite_store(),
        settings=settings.pipeline,
    )
    return AnalysisOrchestrator(stages)


def get_range_comparison_service() -> RangeComparisonService:
    """Build a range comparison service over stored readings."""
    return RangeComparisonService(
        store=get_sqlite_store(),
        registry=get_dam_registry(),
    )


__all__ = [
    "get_analysis_orchestrator",
    "get_app_settings",
    "get_dam_registry",
    "get_geocoder",
    "get_oracle",
    "get_range_comparison_service",
    "get_sqlite_store",
]
