"""
Data models shared across the dam analysis workflow.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Protocol, Sequence, TypedDict
from uuid import uuid4

from damwatch.clients.geocoding import Coordinates
from damwatch.schemas import SearchRecord
from damwatch.services.dam_registry import DamConfig
from damwatch.services.decision import Decision
from damwatch.services.event_channel import (
    ANALYSIS_COMPLETE,
    ANALYSIS_ERROR,
    ANALYSIS_UPDATE,
    EventChannel,
)
from damwatch.services.prediction import Prediction

logger = logging.getLogger(__name__)

STAGE_COUNT = 5


class Geocoder(Protocol):
    async def geocode(self, name: str) -> Optional[Coordinates]:
        ...


class AnalysisOracle(Protocol):
    """Remote imagery and elevation service queried by the pipeline."""

    async def water_vectors(
        self, lat: float, lon: float, buffer_m: float
    ) -> List[Dict[str, Any]]:
        ...

    async def elevation_statistics(
        self, geometry: Dict[str, Any], percentile: int
    ) -> Optional[Dict[str, Optional[float]]]:
        ...

    async def flooded_areas(
        self, geometry: Dict[str, Any], elevations: Sequence[float]
    ) -> List[float]:
        ...

    async def water_level_series(
        self, geometry: Dict[str, Any], start: date, end: date, percentile: int
    ) -> List[Dict[str, Any]]:
        ...


@dataclass(frozen=True, slots=True)
class TimeSeriesReading:
    date: date
    water_level_m: float

    def to_payload(self) -> Dict[str, Any]:
        return {"date": self.date.isoformat(), "waterLevel": self.water_level_m}


@dataclass(frozen=True, slots=True)
class ElevationTier:
    depth_offset_m: float
    elevation_m: float
    area_sqm: float

    def to_payload(self) -> Dict[str, float]:
        return {
            "depth": self.depth_offset_m,
            "elevation": self.elevation_m,
            "area_sqm": self.area_sqm,
        }


@dataclass(frozen=True, slots=True)
class ElevationProfile:
    """DEM summary of the water body plus flooded area at fixed depths."""

    min_m: Optional[float]
    mean_m: float
    max_m: Optional[float]
    surface_m: float
    tiers: tuple[ElevationTier, ...] = ()

    def to_payload(self) -> Dict[str, Any]:
        return {
            "summaryStats": {
                "min": self.min_m,
                "mean": self.mean_m,
                "max": self.max_m,
                "surface": self.surface_m,
            },
            "tieredResults": [tier.to_payload() for tier in self.tiers],
        }


@dataclass(slots=True)
class AnalysisSession:
    """One client request travelling through the pipeline.

    Stage numbers only move forward and exactly one terminal event is sent.
    """

    dam_name: str
    channel: EventChannel
    session_id: str = field(default_factory=lambda: uuid4().hex)
    stage: int = 0
    outcome: Optional[str] = None

    @property
    def finished(self) -> bool:
        return self.outcome is not None

    def _ensure_open(self) -> None:
        if self.finished:
            raise RuntimeError(f"Session {self.session_id} already {self.outcome}")

    async def emit_stage(self, stage: int, message: str) -> None:
        self._ensure_open()
        if not 1 <= stage <= STAGE_COUNT or stage <= self.stage:
            raise ValueError(
                f"Stage {stage} cannot follow stage {self.stage} in session "
                f"{self.session_id}"
            )
        self.stage = stage
        logger.info(
            "Stage %d: %s", stage, message, extra={"session_id": self.session_id}
        )
        await self.channel.send(ANALYSIS_UPDATE, {"stage": stage, "message": message})

    async def complete(self, results: Dict[str, Any]) -> None:
        self._ensure_open()
        self.outcome = "completed"
        await self.channel.send(ANALYSIS_COMPLETE, {"results": results})

    async def fail(self, message: str) -> None:
        self._ensure_open()
        self.outcome = "failed"
        await self.channel.send(ANALYSIS_ERROR, {"message": message})


class AnalysisState(TypedDict, total=False):
    """State tracked inside the LangGraph workflow."""

    session: AnalysisSession
    coords: Coordinates
    water_vectors: List[Dict[str, Any]]
    water_polygon: Dict[str, Any]
    elevation: ElevationProfile
    time_series: List[TimeSeriesReading]
    dam_config: Optional[DamConfig]
    decision: Optional[Decision]
    prediction: Prediction
    search: SearchRecord


__all__ = [
    "STAGE_COUNT",
    "AnalysisOracle",
    "AnalysisSession",
    "AnalysisState",
    "ElevationProfile",
    "ElevationTier",
    "Geocoder",
    "TimeSeriesReading",
]
