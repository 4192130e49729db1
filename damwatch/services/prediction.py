"""
Linear rate-of-change forecast of when a reservoir reaches capacity.

The result is a tagged union: either a full ``PredictedOpening`` or a
``PredictionUnavailable`` carrying a reason and a human readable message.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Dict, Literal, Optional, Union

MISSING_INPUTS = "missing_inputs"
NOT_RISING = "not_rising"
AT_CAPACITY = "at_capacity"
DAM_CONFIG_NOT_FOUND = "dam_config_not_found"
INSUFFICIENT_HISTORY = "insufficient_history"


@dataclass(frozen=True, slots=True)
class PredictedOpening:
    """Days until the gates need opening, assuming the current rate holds."""

    rate_of_change: float
    days_to_open: int
    predicted_open_date: date
    predicted_level_at_open: float
    current_level: float
    dam_capacity: float
    status: Literal["predicted"] = "predicted"

    def to_payload(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "rate_of_change": self.rate_of_change,
            "days_to_open": self.days_to_open,
            "predicted_open_date": self.predicted_open_date.isoformat(),
            "predicted_level_at_open": self.predicted_level_at_open,
            "current_level": self.current_level,
            "dam_capacity": self.dam_capacity,
        }


@dataclass(frozen=True, slots=True)
class PredictionUnavailable:
    """Explains why no opening date could be projected."""

    reason: str
    message: str
    status: Literal["unavailable"] = "unavailable"

    def to_payload(self) -> Dict[str, Any]:
        return {"status": self.status, "reason": self.reason, "message": self.message}


Prediction = Union[PredictedOpening, PredictionUnavailable]


def predict(
    current_level: float,
    rate_per_day: Optional[float],
    capacity: Optional[float],
    reference_date: date,
) -> Prediction:
    """Project when ``current_level`` rising at ``rate_per_day`` hits ``capacity``."""
    if capacity is None or rate_per_day is None:
        return PredictionUnavailable(
            reason=MISSING_INPUTS,
            message="Dam capacity or rate of change unavailable.",
        )
    if rate_per_day <= 0:
        return PredictionUnavailable(
            reason=NOT_RISING,
            message="Water level is not rising; no gate opening is projected.",
        )

    remaining = capacity - current_level
    if remaining <= 0:
        return PredictionUnavailable(
            reason=AT_CAPACITY,
            message="Water level is already at or above capacity.",
        )

    days_to_open = math.ceil(remaining / rate_per_day)
    return PredictedOpening(
        rate_of_change=rate_per_day,
        days_to_open=days_to_open,
        predicted_open_date=reference_date + timedelta(days=days_to_open),
        predicted_level_at_open=current_level + rate_per_day * days_to_open,
        current_level=current_level,
        dam_capacity=capacity,
    )


__all__ = [
    "AT_CAPACITY",
    "DAM_CONFIG_NOT_FOUND",
    "INSUFFICIENT_HISTORY",
    "MISSING_INPUTS",
    "NOT_RISING",
    "PredictedOpening",
    "Prediction",
    "PredictionUnavailable",
    "predict",
]
