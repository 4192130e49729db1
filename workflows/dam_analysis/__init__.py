"""Staged dam analysis workflow.

Runs geocoding, water detection, boundary extraction, elevation profiling and
history compilation against the analysis oracle, then derives the gate
decision and opening forecast.
"""

from __future__ import annotations

from typing import Any


def __getattr__(name: str) -> Any:
    if name == "AnalysisOrchestrator":
        from .orchestrator import AnalysisOrchestrator as loaded_orchestrator

        return loaded_orchestrator
    raise AttributeError(name)


__all__ = ["AnalysisOrchestrator"]
