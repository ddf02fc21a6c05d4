from __future__ import annotations

import asyncio
import json
import logging

from fastapi import WebSocket

from app.core.exceptions import MalformedMutationError, PersistenceError, UnknownMutationError
from app.schemas.conflict import Conflict
from app.schemas.mutation import Mutation, parse_mutation
from app.services.conflict_service import detect_conflicts
from app.services.mutations import apply_mutation
from app.services.persistence import StateRepository
from app.services.store import TimetableStore
from app.services.sync_hub import SyncHub

logger = logging.getLogger(__name__)


class SyncServer:
    """Owner of the canonical timetable.

    Frames are applied one at a time under a lock, and the resulting full
    snapshot is broadcast before the next frame is looked at, so every
    client's last received snapshot is the latest canonical state.
    Persistence runs separately through ``persist``; ``dirty`` records
    whether anything changed since the last successful write.
    """

    def __init__(self, store: TimetableStore, repository: StateRepository, hub: SyncHub) -> None:
        self.store = store
        self.repository = repository
        self.hub = hub
        self.dirty = True
        self._lock = asyncio.Lock()

    def snapshot_message(self) -> str:
        return json.dumps(self.store.snapshot(), ensure_ascii=False)

    def conflicts(self) -> list[Conflict]:
        return detect_conflicts(self.store)

    async def register(self, websocket: WebSocket) -> None:
        await self.hub.connect(websocket)
        async with self._lock:
            await self.hub.send(websocket, self.snapshot_message())

    async def unregister(self, websocket: WebSocket) -> None:
        await self.hub.disconnect(websocket)

    async def handle_message(self, raw: str | bytes) -> bool:
        """Apply one inbound frame and broadcast. Returns True if the mutation was applied."""
        async with self._lock:
            try:
                mutation = parse_mutation(raw)
            except UnknownMutationError as exc:
                logger.warning(exc.message)
                await self.hub.broadcast(self.snapshot_message())
                return False
            except MalformedMutationError as exc:
                logger.warning("Failed to process message: %s", exc.message)
                return False

            if not self.apply(mutation):
                return False
            await self.hub.broadcast(self.snapshot_message())
            return True

    def apply(self, mutation: Mutation) -> bool:
        logger.info("Processing action: %s", mutation.type)
        try:
            apply_mutation(self.store, mutation)
        except ValueError as exc:
            logger.warning("Failed to apply %s: %s", mutation.type, exc)
            return False
        self.dirty = True
        return True

    def persist(self, *, force: bool = False) -> bool:
        if not self.dirty and not force:
            return False
        try:
            self.repository.save(self.store.snapshot())
        except PersistenceError as exc:
            logger.error("%s: %s", exc.message, exc.details.get("error"))
            return False
        self.dirty = False
        return True
