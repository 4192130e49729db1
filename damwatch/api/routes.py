"""
FastAPI routes for the dam monitoring service.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from http import HTTPStatus
from typing import Annotated, Any, List

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from damwatch.dependencies import (
    get_analysis_orchestrator,
    get_app_settings,
    get_dam_registry,
    get_range_comparison_service,
    get_sqlite_store,
)
from damwatch.schemas import (
    ChannelMessage,
    SearchRecord,
    StartAnalysisRequest,
    WaterLevelDifferenceResponse,
)
from damwatch.services.event_channel import (
    ANALYSIS_ERROR,
    START_ANALYSIS,
    WebSocketEventChannel,
)
from damwatch.services.range_comparison import (
    InvalidDateFormat,
    MissingParameters,
    NoDataInRange,
    NoPriorAnalysis,
)

router = APIRouter()
logger = logging.getLogger(__name__)

# Sessions outlive their connection; keep strong references until they finish.
_RUNNING_SESSIONS: set[asyncio.Task] = set()


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@router.get("/history", response_model=List[SearchRecord])
async def list_history(
    store: Annotated[Any, Depends(get_sqlite_store)],
    settings: Annotated[Any, Depends(get_app_settings)],
) -> List[SearchRecord]:
    """Return the most recent analyses, newest first."""
    try:
        return store.list_recent_searches(limit=settings.pipeline.history_limit)
    except sqlite3.Error as exc:
        logger.exception("Could not fetch search history")
        raise HTTPException(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            detail="Could not fetch search history.",
        ) from exc


@router.get("/dams", status_code=HTTPStatus.OK)
async def list_dams(
    registry: Annotated[Any, Depends(get_dam_registry)],
) -> List[dict]:
    """List the dams with configured operating thresholds."""
    return [config.model_dump() for config in registry.all()]


@router.get("/water-level-difference", response_model=WaterLevelDifferenceResponse)
async def water_level_difference(
    service: Annotated[Any, Depends(get_range_comparison_service)],
    dam_name: str | None = Query(
        default=None, description="Dam name exactly as used for the analysis."
    ),
    start: str | None = Query(
        default=None, description="Window start as an ISO 8601 date or datetime."
    ),
    end: str | None = Query(
        default=None, description="Window end as an ISO 8601 date or datetime."
    ),
) -> dict:
    """Compare stored water levels between two dates and project the opening date."""
    try:
        comparison = service.compare(dam_name, start, end)
    except (MissingParameters, InvalidDateFormat) as exc:
        raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail=str(exc)) from exc
    except (NoPriorAnalysis, NoDataInRange) as exc:
        raise HTTPException(status_code=HTTPStatus.NOT_FOUND, detail=str(exc)) from exc
    except sqlite3.Error as exc:
        logger.exception("Error fetching water level difference")
        raise HTTPException(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            detail="Could not fetch water level data.",
        ) from exc
    return comparison.to_payload()


@router.websocket("/ws")
async def analysis_socket(
    websocket: WebSocket,
    orchestrator: Annotated[Any, Depends(get_analysis_orchestrator)],
) -> None:
    """Accept ``start-analysis`` requests and stream each session's progress."""
    await websocket.accept()
    channel = WebSocketEventChannel(websocket)
    logger.info("Client connected")

    try:
        while True:
            try:
                raw = await websocket.receive_json()
                message = ChannelMessage.model_validate(raw)
            except (KeyError, ValueError, ValidationError):
                # KeyError: binary frames carry no "text" payload
                await channel.send(
                    ANALYSIS_ERROR,
                    {"message": "Messages must be JSON objects with an 'event' name."},
                )
                continue

            if message.event != START_ANALYSIS:
                await channel.send(
                    ANALYSIS_ERROR, {"message": f"Unsupported event '{message.event}'."}
                )
                continue

            try:
                request = StartAnalysisRequest.model_validate(message.data)
            except ValidationError:
                await channel.send(
                    ANALYSIS_ERROR, {"message": "A non-empty 'damName' is required."}
                )
                continue

            task = asyncio.create_task(orchestrator.run(request.dam_name, channel))
            _RUNNING_SESSIONS.add(task)
            task.add_done_callback(_RUNNING_SESSIONS.discard)
    except WebSocketDisconnect:
        logger.info("Client disconnected")
    finally:
        channel.close()


__all__ = ["router"]
