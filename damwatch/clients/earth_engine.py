"""
Google Earth Engine adapter implementing the dam analysis oracle.

Every public method is a coroutine. The blocking ``getInfo`` round-trips run
in a worker thread so one slow request never stalls other sessions.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar

import ee

from damwatch.core.config import EarthEngineSettings

logger = logging.getLogger(__name__)

T = TypeVar("T")

_CLOUD_CLASSES = (3, 8, 9)
_MAX_PIXELS = 1e9
_DEM_BAND = "elevation"


class EarthEngineError(RuntimeError):
    """Raised when Earth Engine rejects or fails a computation."""


class EarthEngineOracle:
    """Water mask, elevation and water level queries against Earth Engine."""

    def __init__(self, settings: EarthEngineSettings) -> None:
        self._settings = settings
        self._init_lock = threading.Lock()
        self._initialized = False

    def _ensure_initialized(self) -> None:
        with self._init_lock:
            if self._initialized:
                return
            credentials: Any = None
            if self._settings.service_account and self._settings.private_key_file:
                credentials = ee.ServiceAccountCredentials(
                    self._settings.service_account, self._settings.private_key_file
                )
            if credentials is not None:
                ee.Initialize(credentials, project=self._settings.project)
            else:
                ee.Initialize(project=self._settings.project)
            self._initialized = True
            logger.info("Earth Engine initialized (project=%s)", self._settings.project)

    async def _evaluate(self, description: str, build: Callable[[], T]) -> T:
        """Build and evaluate an EE computation in a worker thread."""

        def _invoke() -> T:
            self._ensure_initialized()
            return build()

        try:
            return await asyncio.to_thread(_invoke)
        except ee.EEException as exc:
            raise EarthEngineError(f"{description} failed: {exc}") from exc

    def _dem(self) -> "ee.Image":
        return ee.Image(self._settings.dem_image)

    def _masked_collection(self, region: "ee.Geometry") -> "ee.ImageCollection":
        def _mask_clouds(image: "ee.Image") -> "ee.Image":
            scl = image.select("SCL")
            mask = scl.neq(_CLOUD_CLASSES[0])
            for value in _CLOUD_CLASSES[1:]:
                mask = mask.And(scl.neq(value))
            return image.updateMask(mask)

        return (
            ee.ImageCollection(self._settings.imagery_collection)
            .filterBounds(region)
            .map(_mask_clouds)
        )

    async def water_vectors(
        self, lat: float, lon: float, buffer_m: float
    ) -> List[Dict[str, Any]]:
        """Vectorize open water around a point, largest polygons first."""

        def _build() -> List[Dict[str, Any]]:
            area = ee.Geometry.Point([lon, lat]).buffer(buffer_m)
            end = datetime.now(timezone.utc).date()
            start = end - timedelta(days=self._settings.composite_lookback_days)
            composite = (
                self._masked_collection(area)
                .filterDate(start.isoformat(), end.isoformat())
                .median()
            )
            water_mask = composite.normalizedDifference(["B3", "B8"]).gt(0)
            vectors = (
                water_mask.selfMask()
                .reduceToVectors(
                    geometry=area,
                    scale=self._settings.vector_scale_m,
                    maxPixels=_MAX_PIXELS,
                )
                .map(lambda feature: feature.set("area", feature.geometry().area(1)))
                .sort("area", False)
                .limit(self._settings.max_water_vectors)
            )
            info = vectors.getInfo() or {}
            return list(info.get("features") or [])

        return await self._evaluate("Water mask vectorization", _build)

    async def elevation_statistics(
        self, geometry: Dict[str, Any], percentile: int
    ) -> Optional[Dict[str, Optional[float]]]:
        """Return min/mean/max and a low percentile of the DEM inside ``geometry``."""

        def _build() -> Optional[Dict[str, Optional[float]]]:
            region = ee.Geometry(geometry, None, False)
            reducer = (
                ee.Reducer.minMax()
                .combine(ee.Reducer.mean(), "", True)
                .combine(ee.Reducer.percentile([percentile]), "", True)
            )
            stats = (
                self._dem()
                .reduceRegion(
                    reducer=reducer,
                    geometry=region,
                    scale=self._settings.dem_scale_m,
                    maxPixels=_MAX_PIXELS,
                )
                .getInfo()
            )
            if not stats:
                return None
            return {
                "min": stats.get(f"{_DEM_BAND}_min"),
                "mean": stats.get(f"{_DEM_BAND}_mean"),
                "max": stats.get(f"{_DEM_BAND}_max"),
                "percentile": stats.get(f"{_DEM_BAND}_p{percentile}"),
            }

        return await self._evaluate("Elevation statistics", _build)

    async def flooded_areas(
        self, geometry: Dict[str, Any], elevations: Sequence[float]
    ) -> List[float]:
        """Area (m^2) of DEM pixels at or below each elevation, in input order."""

        def _build() -> List[float]:
            region = ee.Geometry(geometry, None, False)
            dem = self._dem()
            scale = self._settings.dem_scale_m

            def _area_at(level: Any) -> Any:
                flooded = dem.lte(ee.Number(level)).selfMask().clip(region)
                return (
                    flooded.multiply(ee.Image.pixelArea())
                    .reduceRegion(
                        reducer=ee.Reducer.sum(),
                        geometry=region,
                        scale=scale,
                        maxPixels=_MAX_PIXELS,
                    )
                    .get(_DEM_BAND)
                )

            areas = ee.List(list(elevations)).map(_area_at).getInfo() or []
            return [float(area or 0.0) for area in areas]

        return await self._evaluate("Flooded area calculation", _build)

    async def water_level_series(
        self,
        geometry: Dict[str, Any],
        start: date,
        end: date,
        percentile: int,
    ) -> List[Dict[str, Any]]:
        """Per-image water surface elevation estimates between ``start`` and ``end``."""

        def _build() -> List[Dict[str, Any]]:
            region = ee.Geometry(geometry, None, False)
            dem = self._dem()
            scale = self._settings.dem_scale_m

            def _water_level(image: "ee.Image") -> "ee.Image":
                water = image.normalizedDifference(["B3", "B8"]).gt(0)
                level = (
                    dem.updateMask(water)
                    .reduceRegion(
                        reducer=ee.Reducer.percentile([percentile]),
                        geometry=region,
                        scale=scale,
                        maxPixels=_MAX_PIXELS,
                    )
                    .get(_DEM_BAND)
                )
                return image.set(
                    {"waterLevel": level, "date": image.date().format("YYYY-MM-dd")}
                )

            series = (
                self._masked_collection(region)
                .filterDate(start.isoformat(), end.isoformat())
                .map(_water_level)
                .filter(ee.Filter.notNull(["waterLevel"]))
            )
            rows = (
                series.reduceColumns(ee.Reducer.toList(2), ["date", "waterLevel"])
                .get("list")
                .getInfo()
                or []
            )
            return [{"date": row[0], "waterLevel": row[1]} for row in rows]

        return await self._evaluate("Water level time series", _build)


__all__ = ["EarthEngineError", "EarthEngineOracle"]
