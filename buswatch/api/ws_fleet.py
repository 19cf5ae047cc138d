"""Fleet WebSocket — pushes enriched snapshots to connected clients.

Path: /ws/fleet

A new subscriber immediately receives the current snapshot; after that it
gets one ``buses_update`` message per accepted update and ``incident``
messages as they are reported.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from buswatch.services.connection_manager import ConnectionManager
from buswatch.services.fleet_service import FleetService, snapshot_message

logger = logging.getLogger(__name__)


def create_fleet_router(service: FleetService, manager: ConnectionManager) -> APIRouter:
    """Factory that creates the subscription endpoint."""

    router = APIRouter()

    @router.websocket("/ws/fleet")
    async def fleet_ws(websocket: WebSocket) -> None:
        await manager.connect(websocket)
        try:
            snapshot = await service.snapshot()
            await manager.send_json(websocket, snapshot_message(snapshot))

            # Clients only listen; answer heartbeats
            while True:
                data = await websocket.receive_text()
                if data.strip().lower() == "ping":
                    await websocket.send_text("pong")
        except WebSocketDisconnect:
            pass
        finally:
            await manager.disconnect(websocket)

    return router
