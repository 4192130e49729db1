"""Stage implementations used by the dam analysis workflow."""

from __future__ import annotations

import logging
import math
import sqlite3
from collections import defaultdict
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from damwatch.clients.geocoding import Coordinates
from damwatch.clients.sqlite_store import SQLiteStore
from damwatch.core.config import PipelineSettings
from damwatch.schemas import SearchRecord
from damwatch.services.dam_registry import DamConfig, DamRegistry
from damwatch.services.decision import Decision, decide_for_dam
from damwatch.services.prediction import (
    DAM_CONFIG_NOT_FOUND,
    INSUFFICIENT_HISTORY,
    Prediction,
    PredictionUnavailable,
    predict,
)
from workflows.dam_analysis.errors import (
    ElevationUnavailable,
    LocationNotFound,
    NoWaterBody,
    PersistenceFailed,
    PolygonExtractionFailed,
)
from workflows.dam_analysis.models import (
    AnalysisOracle,
    ElevationProfile,
    ElevationTier,
    Geocoder,
    TimeSeriesReading,
)

logger = logging.getLogger(__name__)

DEPTH_OFFSETS_M: Tuple[float, ...] = (0.0, -2.0, -5.0, -10.0, -15.0, -20.0)


def _utc_today() -> date:
    return datetime.now(timezone.utc).date()


def _years_before(day: date, years: int) -> date:
    try:
        return day.replace(year=day.year - years)
    except ValueError:  # 29 February
        return day.replace(year=day.year - years, day=28)


def select_largest_feature(features: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    """Pick the feature with the biggest ``area`` property (first one on ties)."""
    largest: Optional[Dict[str, Any]] = None
    largest_area = -math.inf
    for feature in features:
        properties = feature.get("properties") or {}
        area = properties.get("area")
        area = float(area) if area is not None else 0.0
        if area > largest_area:
            largest, largest_area = feature, area
    if largest is None:
        raise NoWaterBody()
    return largest


def clean_series(raw: Iterable[Dict[str, Any]]) -> List[TimeSeriesReading]:
    """Drop invalid readings, average same-day values and sort by date."""
    by_day: Dict[date, List[float]] = defaultdict(list)
    for item in raw:
        level = item.get("waterLevel")
        try:
            level = float(level)
            day = date.fromisoformat(str(item.get("date"))[:10])
        except (TypeError, ValueError):
            continue
        if not math.isfinite(level):
            continue
        by_day[day].append(level)

    return [
        TimeSeriesReading(date=day, water_level_m=round(sum(levels) / len(levels), 2))
        for day, levels in sorted(by_day.items())
    ]


def daily_rate(previous: TimeSeriesReading, latest: TimeSeriesReading) -> float:
    """Metres per day between two readings, counting at least one day."""
    days = max(1, (latest.date - previous.date).days)
    return (latest.water_level_m - previous.water_level_m) / days


class AnalysisStages:
    """Facade over the collaborators needed by each pipeline stage."""

    def __init__(
        self,
        *,
        geocoder: Geocoder,
        oracle: AnalysisOracle,
        registry: DamRegistry,
        store: SQLiteStore,
        settings: PipelineSettings,
        today: Callable[[], date] = _utc_today,
    ) -> None:
        self._geocoder = geocoder
        self._oracle = oracle
        self._registry = registry
        self._store = store
        self._settings = settings
        self._today = today

    async def geocode(self, dam_name: str) -> Coordinates:
        coords = await self._geocoder.geocode(dam_name)
        if coords is None:
            raise LocationNotFound(f'Could not find a location for "{dam_name}".')
        return coords

    async def detect_water(self, coords: Coordinates) -> List[Dict[str, Any]]:
        vectors = await self._oracle.water_vectors(
            coords.lat, coords.lon, self._settings.buffer_radius_m
        )
        if not vectors:
            raise NoWaterBody(
                "No water body was detected within "
                f"{self._settings.buffer_radius_m / 1000:g} km of the location."
            )
        return list(vectors)

    def extract_boundary(self, vectors: List[Dict[str, Any]]) -> Dict[str, Any]:
        geometry = select_largest_feature(vectors).get("geometry")
        if not geometry:
            raise PolygonExtractionFailed()
        return geometry

    async def elevation_profile(self, geometry: Dict[str, Any]) -> ElevationProfile:
        stats = await self._oracle.elevation_statistics(
            geometry, self._settings.surface_percentile
        )
        if not stats or stats.get("mean") is None or stats.get("percentile") is None:
            raise ElevationUnavailable()

        surface = float(stats["percentile"])
        elevations = [surface + offset for offset in DEPTH_OFFSETS_M]
        areas = await self._oracle.flooded_areas(geometry, elevations)
        if len(areas) != len(elevations):
            raise ElevationUnavailable(
                "Elevation service returned an incomplete area profile."
            )

        tiers = sorted(
            (
                ElevationTier(depth_offset_m=offset, elevation_m=elevation, area_sqm=area)
                for offset, elevation, area in zip(DEPTH_OFFSETS_M, elevations, areas)
            ),
            key=lambda tier: tier.elevation_m,
            reverse=True,
        )
        return ElevationProfile(
            min_m=stats.get("min"),
            mean_m=float(stats["mean"]),
            max_m=stats.get("max"),
            surface_m=surface,
            tiers=tuple(tiers),
        )

    async def historical_series(
        self, geometry: Dict[str, Any]
    ) -> List[TimeSeriesReading]:
        end = self._today()
        start = _years_before(end, self._settings.history_years)
        raw = await self._oracle.water_level_series(
            geometry, start, end, self._settings.surface_percentile
        )
        return clean_series(raw)

    def assess(
        self, dam_name: str, series: List[TimeSeriesReading]
    ) -> Tuple[Optional[DamConfig], Optional[Decision], Prediction]:
        """Derive the gate decision and opening forecast from the latest readings."""
        config = self._registry.find(dam_name)
        if len(series) < 2:
            return config, None, PredictionUnavailable(
                reason=INSUFFICIENT_HISTORY,
                message="At least two historical readings are needed to assess the trend.",
            )
        if config is None:
            return None, None, PredictionUnavailable(
                reason=DAM_CONFIG_NOT_FOUND,
                message=f'No dam configuration matches "{dam_name}".',
            )

        previous, latest = series[-2], series[-1]
        decision = decide_for_dam(latest.water_level_m, previous.water_level_m, config)
        prediction = predict(
            latest.water_level_m,
            daily_rate(previous, latest),
            config.capacity_m,
            latest.date,
        )
        return config, decision, prediction

    def persist(
        self,
        *,
        session_id: str,
        dam_name: str,
        coords: Coordinates,
        series: List[TimeSeriesReading],
    ) -> SearchRecord:
        """Save the search (fatal on failure) and then its readings (best effort)."""
        try:
            search = self._store.insert_search(
                dam_name=dam_name, lat=coords.lat, lon=coords.lon
            )
        except sqlite3.Error as exc:
            raise PersistenceFailed(f"Failed to save search: {exc}") from exc

        extra = {"session_id": session_id, "search_id": search.id}
        if not series:
            logger.warning("No time-series data to save.", extra=extra)
            return search

        try:
            saved = self._store.insert_readings(
                search_id=search.id,
                readings=((reading.date, reading.water_level_m) for reading in series),
            )
        except sqlite3.Error:
            logger.warning(
                "Failed to save time-series data. Proceeding anyway.",
                exc_info=True,
                extra=extra,
            )
        else:
            logger.info("Saved %d time-series points.", saved, extra=extra)
        return search


__all__ = [
    "DEPTH_OFFSETS_M",
    "AnalysisStages",
    "clean_series",
    "daily_rate",
    "select_largest_feature",
]
