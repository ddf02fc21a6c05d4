from __future__ import annotations

import asyncio
import contextlib
import logging

from app.services.sync_server import SyncServer

logger = logging.getLogger(__name__)


class AutosaveTask:
    """Writes canonical state on a fixed interval, independent of traffic.

    A failed write leaves the server dirty, so the next tick retries it.
    """

    def __init__(self, server: SyncServer, interval_seconds: float) -> None:
        self._server = server
        self._interval = interval_seconds
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="timetable-autosave")
        logger.info("Autosave every %.1fs to %s", self._interval, self._server.repository.path)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            self._server.persist()
