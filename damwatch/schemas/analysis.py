"""
Pydantic models for dam analysis requests, history and range comparisons.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class StartAnalysisRequest(BaseModel):
    """Payload of a ``start-analysis`` message sent over the WebSocket."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    dam_name: str = Field(
        ...,
        alias="damName",
        min_length=1,
        description="Free-text dam or reservoir name, e.g. 'Tehri Dam'.",
    )


class ChannelMessage(BaseModel):
    """Envelope for every frame exchanged on the analysis WebSocket."""

    event: str = Field(..., description="Event name, e.g. 'analysis-update'.")
    data: Dict[str, Any] = Field(default_factory=dict)


class SearchRecord(BaseModel):
    """A persisted analysis request."""

    id: int
    dam_name: str
    lat: float
    lon: float
    created_at: datetime


class ReadingPoint(BaseModel):
    """A stored water level reading."""

    timestamp: date
    water_level: float


class WaterLevelDifferenceResponse(BaseModel):
    """Water level change between the first and last reading in a window."""

    start_level: float
    end_level: float
    difference: float = Field(..., description="End minus start level, in metres.")
    days: int = Field(..., ge=1, description="Days between first and last reading.")
    rate_of_change: float = Field(..., description="Metres per day over the window.")
    data: List[ReadingPoint] = Field(default_factory=list)
    prediction: Dict[str, Any] = Field(
        ..., description="Either a projected opening or an unavailability message."
    )
    dam_config: Optional[Dict[str, Any]] = None
