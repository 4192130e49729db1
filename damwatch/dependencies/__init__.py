"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_analysis_orchestrator,
    get_app_settings,
    get_dam_registry,
    get_geocoder,
    get_oracle,
    get_range_comparison_service,
    get_sqlite_store,
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
