"""
Water level change over a date window, based on persisted readings.

Works from the most recent stored analysis of a dam and never calls the
analysis oracle.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from damwatch.clients.sqlite_store import SQLiteStore
from damwatch.schemas import ReadingPoint
from damwatch.services.dam_registry import DamConfig, DamRegistry
from damwatch.services.prediction import Prediction, predict

logger = logging.getLogger(__name__)


class RangeComparisonError(Exception):
    """Base class for range comparison failures."""


class MissingParameters(RangeComparisonError):
    def __init__(self, missing: List[str]) -> None:
        self.missing = missing
        names = ", ".join(f"'{name}'" for name in missing)
        super().__init__(f"Missing {names} query parameter(s).")


class InvalidDateFormat(RangeComparisonError):
    pass


class NoPriorAnalysis(RangeComparisonError):
    def __init__(self, dam_name: str) -> None:
        super().__init__(
            f'Could not find a previous analysis for "{dam_name}". '
            "Please run a search first."
        )


class NoDataInRange(RangeComparisonError):
    def __init__(self) -> None:
        super().__init__("No data found for the selected range.")


def parse_day(value: str, *, field_name: str) -> date:
    """Parse an ISO date or datetime and drop anything finer than a day.

    Aware datetimes are converted to UTC first.
    """
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = f"{text[:-1]}+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise InvalidDateFormat(
            f"'{field_name}' must be an ISO 8601 date or datetime, got {value!r}."
        ) from exc
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.date()


@dataclass(frozen=True, slots=True)
class RangeComparison:
    start_level: float
    end_level: float
    difference: float
    days: int
    rate_of_change: float
    data: List[ReadingPoint]
    prediction: Prediction
    dam_config: Optional[DamConfig] = None

    def to_payload(self) -> Dict[str, Any]:
        return {
            "start_level": self.start_level,
            "end_level": self.end_level,
            "difference": self.difference,
            "days": self.days,
            "rate_of_change": self.rate_of_change,
            "data": [point.model_dump(mode="json") for point in self.data],
            "prediction": self.prediction.to_payload(),
            "dam_config": self.dam_config.model_dump() if self.dam_config else None,
        }


class RangeComparisonService:
    """Compare the first and last stored reading inside a window."""

    def __init__(self, store: SQLiteStore, registry: DamRegistry) -> None:
        self._store = store
        self._registry = registry

    def compare(
        self, dam_name: Optional[str], start: Optional[str], end: Optional[str]
    ) -> RangeComparison:
        supplied = {"dam_name": dam_name, "start": start, "end": end}
        missing = [name for name, value in supplied.items() if not value or not value.strip()]
        if missing:
            raise MissingParameters(missing)

        start_day = parse_day(start, field_name="start")
        end_day = parse_day(end, field_name="end")
        if start_day > end_day:
            raise InvalidDateFormat("'start' must not be later than 'end'.")

        search = self._store.latest_search_for(dam_name)
        if search is None:
            raise NoPriorAnalysis(dam_name)

        readings = self._store.readings_between(
            search_id=search.id, start=start_day, end=end_day
        )
        if not readings:
            raise NoDataInRange()

        first, last = readings[0], readings[-1]
        difference = round(last.water_level - first.water_level, 2)
        days = max(1, (last.timestamp - first.timestamp).days)
        rate = difference / days

        config = self._registry.find(dam_name)
        if config is None:
            logger.info("No dam configuration for %r; prediction degraded", dam_name)
        prediction = predict(
            last.water_level,
            rate,
            config.capacity_m if config else None,
            last.timestamp,
        )
        return RangeComparison(
            start_level=first.water_level,
            end_level=last.water_level,
            difference=difference,
            days=days,
            rate_of_change=rate,
            data=readings,
            prediction=prediction,
            dam_config=config,
        )


__all__ = [
    "InvalidDateFormat",
    "MissingParameters",
    "NoDataInRange",
    "NoPriorAnalysis",
    "RangeComparison",
    "RangeComparisonError",
    "RangeComparisonService",
    "parse_day",
]
