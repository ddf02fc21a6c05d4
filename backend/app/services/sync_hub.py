from __future__ import annotations

import asyncio
import logging

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class SyncHub:
    """Tracks the open sync sockets and fans snapshot frames out to them."""

    def __init__(self) -> None:
        self._connections: set[WebSocket] = set()
        self._lock = asyncio.Lock()

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._connections.add(websocket)
        logger.info("Client connected (%d open)", len(self._connections))

    async def disconnect(self, websocket: WebSocket) -> None:
        async with self._lock:
            if websocket not in self._connections:
                return
            self._connections.discard(websocket)
        logger.info("Client disconnected (%d open)", len(self._connections))

    async def send(self, websocket: WebSocket, message: str) -> bool:
        try:
            await websocket.send_text(message)
        except Exception:  # pragma: no cover - network/runtime dependent
            await self.disconnect(websocket)
            return False
        return True

    async def broadcast(self, message: str) -> int:
        async with self._lock:
            sockets = list(self._connections)

        if not sockets:
            return 0

        delivered = 0
        stale: list[WebSocket] = []
        for websocket in sockets:
            try:
                await websocket.send_text(message)
                delivered += 1
            except Exception:  # pragma: no cover - network/runtime dependent
                stale.append(websocket)

        if stale:
            async with self._lock:
                for socket in stale:
                    self._connections.discard(socket)
            logger.debug("Removed %d stale sync websocket(s)", len(stale))

        logger.debug("State broadcasted to %d client(s).", delivered)
        return delivered
