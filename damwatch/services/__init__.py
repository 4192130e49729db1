"""Service layer exports."""

from .dam_registry import DamConfig, DamRegistry, find_dam
from .decision import Decision, GateStatus, decide, decide_for_dam
from .event_channel import EventChannel, WebSocketEventChannel
from .prediction import PredictedOpening, Prediction, PredictionUnavailable, predict
from .range_comparison import RangeComparison, RangeComparisonService

__all__ = [
    "DamConfig",
    "DamRegistry",
    "Decision",
    "EventChannel",
    "GateStatus",
    "PredictedOpening",
    "Prediction",
    "PredictionUnavailable",
    "RangeComparison",
    "RangeComparisonService",
    "WebSocketEventChannel",
    "decide",
    "decide_for_dam",
    "find_dam",
    "predict",
]
