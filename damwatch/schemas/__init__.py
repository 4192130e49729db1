"""Public schema exports."""

from .analysis import (
    ChannelMessage,
    ReadingPoint,
    SearchRecord,
    StartAnalysisRequest,
    WaterLevelDifferenceResponse,
)

__all__ = [
    "ChannelMessage",
    "ReadingPoint",
    "SearchRecord",
    "StartAnalysisRequest",
    "WaterLevelDifferenceResponse",
]
