"""
Entry point that runs one dam analysis session end to end.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from damwatch.services.event_channel import EventChannel
from workflows.dam_analysis.errors import AnalysisError
from workflows.dam_analysis.graph import create_analysis_graph
from workflows.dam_analysis.models import AnalysisSession, AnalysisState
from workflows.dam_analysis.stages import AnalysisStages

logger = logging.getLogger(__name__)

_UNEXPECTED_ERROR = "An unexpected error occurred."


def build_completion_payload(state: AnalysisState) -> Dict[str, Any]:
    """Shape the final workflow state into the ``analysis-complete`` results."""
    decision = state.get("decision")
    config = state.get("dam_config")
    search = state.get("search")
    return {
        "coords": state["coords"].to_payload(),
        "waterPolygon": state["water_polygon"],
        "analysis": state["elevation"].to_payload(),
        "timeSeriesData": [reading.to_payload() for reading in state["time_series"]],
        "decision": decision.to_payload() if decision is not None else None,
        "currentPrediction": state["prediction"].to_payload(),
        "damConfig": config.model_dump() if config is not None else None,
        "searchId": search.id if search is not None else None,
    }


class AnalysisOrchestrator:
    """Run the staged workflow and report exactly one terminal event."""

    def __init__(self, stages: AnalysisStages) -> None:
        self._graph = create_analysis_graph(stages)

    async def run(self, dam_name: str, channel: EventChannel) -> AnalysisSession:
        session = AnalysisSession(dam_name=dam_name, channel=channel)
        extra = {"session_id": session.session_id}
        logger.info("Starting analysis for %r", dam_name, extra=extra)

        try:
            final_state = await self._graph.ainvoke({"session": session})
            results = build_completion_payload(final_state)
        except AnalysisError as exc:
            logger.error(
                "Analysis failed at stage %d: %s", session.stage, exc, extra=extra
            )
            await session.fail(str(exc))
            return session
        except Exception as exc:
            logger.exception(
                "Unexpected failure during analysis at stage %d", session.stage, extra=extra
            )
            await session.fail(str(exc) or _UNEXPECTED_ERROR)
            return session

        await session.complete(results)
        logger.info("Analysis complete", extra=extra)
        return session


__all__ = ["AnalysisOrchestrator", "build_completion_payload"]
