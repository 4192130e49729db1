"""Gate operation rules derived from the two most recent water levels."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict

if TYPE_CHECKING:
    from damwatch.services.dam_registry import DamConfig

StageAreaFunc = Callable[[float], float]

DEFAULT_STAGE_AREA_SQM = 50000.0


class GateStatus(str, Enum):
    NO_ACTION = "NO_ACTION"
    WARN = "WARN"
    PREPARE_RELEASE = "PREPARE_RELEASE"
    EMERGENCY_RELEASE = "EMERGENCY_RELEASE"


def default_stage_area(elevation_m: float) -> float:
    """Flat stand-in for a real stage-area curve."""
    return DEFAULT_STAGE_AREA_SQM


def overflow_volume(
    level_m: float, capacity_m: float, stage_area: StageAreaFunc = default_stage_area
) -> float:
    """Approximate volume (m^3) stored above capacity."""
    if level_m <= capacity_m:
        return 0.0
    return (level_m - capacity_m) * stage_area(capacity_m)


@dataclass(frozen=True, slots=True)
class Decision:
    status: GateStatus
    today_level_m: float
    yesterday_level_m: float
    dam_capacity_m: float
    rate_of_change_m_per_day: float
    predicted_next_level_m: float
    overflow_m3: float
    warn_threshold_m: float
    emergency_threshold_m: float

    def to_payload(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "todayLevelM": self.today_level_m,
            "yesterdayLevelM": self.yesterday_level_m,
            "damCapacityM": self.dam_capacity_m,
            "rateOfChangeMPerDay": self.rate_of_change_m_per_day,
            "predictedNextLevelM": self.predicted_next_level_m,
            "overflowM3": self.overflow_m3,
            "warnThresholdM": self.warn_threshold_m,
            "emergencyThresholdM": self.emergency_threshold_m,
        }


def decide(
    today_level: float,
    yesterday_level: float,
    capacity: float,
    warn_fraction: float = 0.9,
    emergency_margin: float = 0.0,
    rate_threshold: float = 1.0,
    stage_area: StageAreaFunc = default_stage_area,
) -> Decision:
    """
    Classify the operational risk for today's level.

    Rules are evaluated in priority order and the first match wins; moving a
    rule changes the outcome for overlapping inputs.
    """
    rate = today_level - yesterday_level
    warn_threshold = capacity * warn_fraction
    emergency_threshold = capacity + emergency_margin
    predicted_next = today_level + rate
    rising_fast = rate >= rate_threshold
    will_reach_capacity = predicted_next >= capacity

    if today_level > emergency_threshold:
        status = GateStatus.EMERGENCY_RELEASE
    elif today_level >= capacity:
        status = GateStatus.PREPARE_RELEASE
    elif today_level >= warn_threshold:
        if rising_fast or will_reach_capacity:
            status = GateStatus.PREPARE_RELEASE
        else:
            status = GateStatus.WARN
    elif will_reach_capacity or rising_fast:
        status = GateStatus.WARN
    else:
        status = GateStatus.NO_ACTION

    return Decision(
        status=status,
        today_level_m=today_level,
        yesterday_level_m=yesterday_level,
        dam_capacity_m=capacity,
        rate_of_change_m_per_day=rate,
        predicted_next_level_m=predicted_next,
        overflow_m3=overflow_volume(today_level, capacity, stage_area),
        warn_threshold_m=warn_threshold,
        emergency_threshold_m=emergency_threshold,
    )


def decide_for_dam(
    today_level: float,
    yesterday_level: float,
    config: "DamConfig",
    stage_area: StageAreaFunc = default_stage_area,
) -> Decision:
    """Run :func:`decide` with the thresholds configured for one dam."""
    return decide(
        today_level,
        yesterday_level,
        capacity=config.capacity_m,
        warn_fraction=config.warn_fraction,
        emergency_margin=config.emergency_margin_m,
        rate_threshold=config.rate_threshold_m_per_day,
        stage_area=stage_area,
    )


__all__ = [
    "DEFAULT_STAGE_AREA_SQM",
    "Decision",
    "GateStatus",
    "StageAreaFunc",
    "decide",
    "decide_for_dam",
    "default_stage_area",
    "overflow_volume",
]
