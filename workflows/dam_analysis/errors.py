"""Failures that end an analysis session with an ``analysis-error`` event."""

from __future__ import annotations


class AnalysisError(Exception):
    """Base class for fatal analysis failures; the message is shown to the client."""

    default_message = "The analysis could not be completed."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class LocationNotFound(AnalysisError):
    default_message = "Could not find the requested location."


class NoWaterBody(AnalysisError):
    default_message = "No water body was detected in the analysis area."


class PolygonExtractionFailed(AnalysisError):
    default_message = "Could not find a distinct water body at this location."


class ElevationUnavailable(AnalysisError):
    default_message = "Could not determine surface elevation from DEM."


class PersistenceFailed(AnalysisError):
    default_message = "Failed to save the analysis."


__all__ = [
    "AnalysisError",
    "ElevationUnavailable",
    "LocationNotFound",
    "NoWaterBody",
    "PersistenceFailed",
    "PolygonExtractionFailed",
]
