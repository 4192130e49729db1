"""
LangGraph workflow definition for the staged dam analysis.

The graph is strictly linear: every node depends on the previous node's
output, and an exception in any node ends the run before later stages emit.
"""

from __future__ import annotations

from typing import Any

from langgraph.graph import END, START, StateGraph

from workflows.dam_analysis.models import AnalysisState
from workflows.dam_analysis.stages import AnalysisStages

STAGE_MESSAGES = {
    1: 'Geocoding location for "{dam_name}"...',
    2: "Analyzing satellite imagery...",
    3: "Extracting precise water boundary...",
    4: "Calculating elevation profile...",
    5: "Compiling historical water levels...",
}


async def _announce(state: AnalysisState, stage: int) -> None:
    session = state["session"]
    await session.emit_stage(
        stage, STAGE_MESSAGES[stage].format(dam_name=session.dam_name)
    )


async def _geocode(state: AnalysisState, stages: AnalysisStages) -> AnalysisState:
    """Resolve the dam name to coordinates."""
    await _announce(state, 1)
    state["coords"] = await stages.geocode(state["session"].dam_name)
    return state


async def _detect_water(state: AnalysisState, stages: AnalysisStages) -> AnalysisState:
    """Request a vectorized water mask around the coordinates."""
    await _announce(state, 2)
    state["water_vectors"] = await stages.detect_water(state["coords"])
    return state


async def _extract_boundary(
    state: AnalysisState, stages: AnalysisStages
) -> AnalysisState:
    """Keep the largest water polygon as the reservoir outline."""
    await _announce(state, 3)
    state["water_polygon"] = stages.extract_boundary(state["water_vectors"])
    return state


async def _profile_elevation(
    state: AnalysisState, stages: AnalysisStages
) -> AnalysisState:
    await _announce(state, 4)
    state["elevation"] = await stages.elevation_profile(state["water_polygon"])
    return state


async def _compile_history(
    state: AnalysisState, stages: AnalysisStages
) -> AnalysisState:
    await _announce(state, 5)
    state["time_series"] = await stages.historical_series(state["water_polygon"])
    return state


async def _assess(state: AnalysisState, stages: AnalysisStages) -> AnalysisState:
    """Run the gate decision and opening forecast; absent inputs degrade, not fail."""
    config, decision, prediction = stages.assess(
        state["session"].dam_name, state.get("time_series", [])
    )
    state["dam_config"] = config
    state["decision"] = decision
    state["prediction"] = prediction
    return state


async def _persist(state: AnalysisState, stages: AnalysisStages) -> AnalysisState:
    session = state["session"]
    state["search"] = stages.persist(
        session_id=session.session_id,
        dam_name=session.dam_name,
        coords=state["coords"],
        series=state.get("time_series", []),
    )
    return state


def create_analysis_graph(stages: AnalysisStages) -> Any:
    """Compile and return the dam analysis LangGraph workflow."""
    graph = StateGraph(AnalysisState)

    async def geocode_node(state: AnalysisState) -> AnalysisState:
        return await _geocode(state, stages)

    async def detect_water_node(state: AnalysisState) -> AnalysisState:
        return await _detect_water(state, stages)

    async def extract_boundary_node(state: AnalysisState) -> AnalysisState:
        return await _extract_boundary(state, stages)

    async def profile_elevation_node(state: AnalysisState) -> AnalysisState:
        return await _profile_elevation(state, stages)

    async def compile_history_node(state: AnalysisState) -> AnalysisState:
        return await _compile_history(state, stages)

    async def assess_node(state: AnalysisState) -> AnalysisState:
        return await _assess(state, stages)

    async def persist_node(state: AnalysisState) -> AnalysisState:
        return await _persist(state, stages)

    graph.add_node("geocode", geocode_node)
    graph.add_node("detect_water", detect_water_node)
    graph.add_node("extract_boundary", extract_boundary_node)
    graph.add_node("profile_elevation", profile_elevation_node)
    graph.add_node("compile_history", compile_history_node)
    graph.add_node("assess", assess_node)
    graph.add_node("persist", persist_node)

    graph.add_edge(START, "geocode")
    graph.add_edge("geocode", "detect_water")
    graph.add_edge("detect_water", "extract_boundary")
    graph.add_edge("extract_boundary", "profile_elevation")
    graph.add_edge("profile_elevation", "compile_history")
    graph.add_edge("compile_history", "assess")
    graph.add_edge("assess", "persist")
    graph.add_edge("persist", END)
    return graph.compile()


__all__ = ["STAGE_MESSAGES", "create_analysis_graph"]
