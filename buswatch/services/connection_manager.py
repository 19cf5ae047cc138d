"""Manages subscriber WebSocket connections for fleet snapshot pushes."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Tracks connected subscribers and fans payloads out to them.

    Delivery is fire-and-forget: a failing subscriber is dropped and logged,
    and never prevents delivery to the others.
    """

    def __init__(self) -> None:
        self._connections: set[WebSocket] = set()
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._connections.add(websocket)
        logger.info("Subscriber connected (%d total)", len(self._connections))

    async def disconnect(self, websocket: WebSocket) -> None:
        async with self._lock:
            self._connections.discard(websocket)
        logger.info("Subscriber disconnected (%d remaining)", len(self._connections))

    @property
    def active_count(self) -> int:
        return len(self._connections)

    async def send_json(self, websocket: WebSocket, data: dict[str, Any]) -> bool:
        """Send to one subscriber.  Returns False if delivery failed."""
        try:
            await websocket.send_text(json.dumps(data, default=str))
            return True
        except Exception as exc:
            logger.warning("Delivery to subscriber failed: %s", exc)
            return False

    async def broadcast_json(self, data: dict[str, Any]) -> int:
        """Send a JSON payload to every subscriber; returns deliveries made."""
        message = json.dumps(data, default=str)

        async with self._lock:
            clients = set(self._connections)

        dead: set[WebSocket] = set()
        delivered = 0
        for ws in clients:
            try:
                await ws.send_text(message)
                delivered += 1
            except Exception as exc:
                logger.debug("Broadcast to subscriber failed: %s", exc)
                dead.add(ws)

        if dead:
            async with self._lock:
                self._connections -= dead
            logger.info("Removed %d dead subscriber(s)", len(dead))
        return delivered
