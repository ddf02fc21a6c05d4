from fastapi import APIRouter, Depends, WebSocket

from app.api.deps import get_sync_server
from app.services.sync_server import SyncServer

router = APIRouter()


@router.websocket("/sync/ws")
async def sync_websocket(
    websocket: WebSocket,
    server: SyncServer = Depends(get_sync_server),
) -> None:
    await server.register(websocket)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes")
            if raw is None:
                continue
            await server.handle_message(raw)
    finally:
        await server.unregister(websocket)
