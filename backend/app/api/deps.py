from fastapi import Depends
from starlette.requests import HTTPConnection

from app.services.store import TimetableStore
from app.services.sync_server import SyncServer


def get_sync_server(connection: HTTPConnection) -> SyncServer:
    return connection.app.state.sync_server


def get_store(server: SyncServer = Depends(get_sync_server)) -> TimetableStore:
    return server.store
