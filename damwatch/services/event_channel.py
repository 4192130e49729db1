"""
Fire-and-forget event delivery to a connected analysis client.

A channel belongs to one client connection. Sends after the client has gone
away are dropped silently, so sessions keep running to completion.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Protocol

from fastapi import WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)

START_ANALYSIS = "start-analysis"
ANALYSIS_UPDATE = "analysis-update"
ANALYSIS_COMPLETE = "analysis-complete"
ANALYSIS_ERROR = "analysis-error"


class EventChannel(Protocol):
    async def send(self, event: str, data: Dict[str, Any]) -> None:
        ...


class WebSocketEventChannel:
    """Serialize JSON frames onto a WebSocket shared by concurrent sessions."""

    def __init__(self, websocket: WebSocket) -> None:
        self._websocket = websocket
        self._lock = asyncio.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        self._closed = True

    async def send(self, event: str, data: Dict[str, Any]) -> None:
        if self._closed:
            logger.debug("Dropping %s for disconnected client", event)
            return
        async with self._lock:
            try:
                await self._websocket.send_json({"event": event, "data": data})
            except (WebSocketDisconnect, RuntimeError, OSError) as exc:
                self._closed = True
                logger.debug("Client went away while sending %s: %s", event, exc)


__all__ = [
    "ANALYSIS_COMPLETE",
    "ANALYSIS_ERROR",
    "ANALYSIS_UPDATE",
    "START_ANALYSIS",
    "EventChannel",
    "WebSocketEventChannel",
]
