from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable
from functools import partial
from typing import Any, Literal

from app.client.transport import Transport, TransportFactory, websocket_transport
from app.core.config import get_settings
from app.core.exceptions import TransportError
from app.db.bootstrap import normalize_state_document
from app.db.defaults import default_state
from app.schemas.conflict import Conflict
from app.schemas.mutation import (
    AddSchedule,
    BulkAddScheduleForEvent,
    BulkEventPayload,
    ClearAllData,
    DeleteSchedule,
    MasterDataPayload,
    MoveSchedule,
    MovePayload,
    Mutation,
    SetAcademicCalendar,
    SetInstitutionDetails,
    SetPrintSettings,
    SetSettings,
    UpdateMasterData,
    UpdateSchedule,
    mutation_to_wire,
)
from app.schemas.timetable import (
    AcademicCalendar,
    EventActivity,
    FullTimetableState,
    InstitutionDetails,
    PrintSettings,
    ScheduleEntry,
    ScheduleEntryCreate,
    TimetableSettings,
)
from app.services.conflict_service import detect_conflicts
from app.services.mutations import apply_mutation
from app.services.store import TimetableStore

logger = logging.getLogger(__name__)

ConnectionStatus = Literal["connecting", "open", "closed"]


class SyncAgent:
    """One editor's replica of the timetable, kept in step with the server.

    Local mutations are applied to the replica straight away and then
    forwarded; nothing is rolled back when forwarding fails. Every snapshot
    pushed by the server replaces the replica wholesale, so a received
    snapshot always wins over optimistic changes the server has not seen.

    Reconnecting is manual (``retry_connection``) unless ``auto_reconnect``
    is set, in which case closed connections are retried with exponential
    backoff up to ``max_reconnect_attempts`` times.
    """

    def __init__(
        self,
        transport_factory: TransportFactory,
        *,
        state: FullTimetableState | None = None,
        auto_reconnect: bool = False,
        max_reconnect_attempts: int = 5,
        initial_backoff: float = 1.0,
        max_backoff: float = 30.0,
    ) -> None:
        self._transport_factory = transport_factory
        self.store = TimetableStore(state if state is not None else default_state())
        self.conflicts: list[Conflict] = detect_conflicts(self.store)
        self.status: ConnectionStatus = "closed"

        self.auto_reconnect = auto_reconnect
        self.max_reconnect_attempts = max_reconnect_attempts
        self.initial_backoff = initial_backoff
        self.max_backoff = max_backoff
        self.reconnect_attempts = 0

        self._transport: Transport | None = None
        self._generation = 0
        self._reconnect_timer: threading.Timer | None = None
        self._lock = threading.RLock()
        self._status_listeners: list[Callable[[ConnectionStatus], None]] = []
        self._snapshot_listeners: list[Callable[[FullTimetableState], None]] = []

    @classmethod
    def for_url(cls, url: str | None = None, **options: Any) -> SyncAgent:
        """Agent talking to ``url``, or to the configured sync_server_url. Does not connect."""
        return cls(websocket_transport(url or get_settings().sync_server_url), **options)

    # -- listeners -------------------------------------------------------

    def on_status_change(self, listener: Callable[[ConnectionStatus], None]) -> None:
        self._status_listeners.append(listener)

    def on_snapshot(self, listener: Callable[[FullTimetableState], None]) -> None:
        self._snapshot_listeners.append(listener)

    def _set_status(self, status: ConnectionStatus) -> None:
        if status == self.status:
            return
        self.status = status
        _notify(self._status_listeners, status)

    # -- connection lifecycle -------------------------------------------

    def connect(self) -> ConnectionStatus:
        with self._lock:
            self._cancel_reconnect()
            self._teardown()
            self._generation += 1
            generation = self._generation
            self._set_status("connecting")

        try:
            transport = self._transport_factory(
                partial(self._receive, generation),
                partial(self._closed, generation),
            )
        except TransportError as exc:
            logger.warning("WebSocket connection failed: %s. Working offline.", exc.message)
            self._closed(generation)
            return self.status

        with self._lock:
            if generation != self._generation or self.status != "connecting":
                # Superseded by a newer connect, or closed during the handshake.
                transport.close()
                return self.status
            self._transport = transport
            self.reconnect_attempts = 0
            self._set_status("open")
            logger.info("WebSocket connected")
        return self.status

    def retry_connection(self) -> ConnectionStatus:
        with self._lock:
            self.reconnect_attempts = 0
        return self.connect()

    def close(self) -> None:
        with self._lock:
            self._cancel_reconnect()
            self._generation += 1
            self._teardown()
            self._set_status("closed")

    def _teardown(self) -> None:
        transport, self._transport = self._transport, None
        if transport is not None:
            try:
                transport.close()
            except TransportError as exc:
                logger.debug("Ignoring error while closing transport: %s", exc.message)

    def _closed(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._transport = None
            self._set_status("closed")
            logger.info("WebSocket disconnected.")
            if self.auto_reconnect:
                self._schedule_reconnect()

    def next_backoff(self) -> float:
        return min(self.initial_backoff * (2 ** self.reconnect_attempts), self.max_backoff)

    def _schedule_reconnect(self) -> None:
        if self.reconnect_attempts >= self.max_reconnect_attempts:
            logger.warning("Giving up after %d reconnect attempt(s)", self.reconnect_attempts)
            return
        delay = self.next_backoff()
        self.reconnect_attempts += 1
        logger.info("Reconnecting in %.1fs (attempt %d)", delay, self.reconnect_attempts)
        timer = threading.Timer(delay, self.connect)
        timer.daemon = True
        self._reconnect_timer = timer
        timer.start()

    def _cancel_reconnect(self) -> None:
        if self._reconnect_timer is not None:
            self._reconnect_timer.cancel()
            self._reconnect_timer = None

    # -- inbound ---------------------------------------------------------

    def _receive(self, generation: int, raw: str | bytes) -> None:
        if generation != self._generation:
            return
        self.handle_message(raw)

    def handle_message(self, raw: str | bytes) -> bool:
        try:
            document = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.error("Error parsing state from server: %s", exc)
            return False
        if not isinstance(document, dict) or not isinstance(document.get("settings"), dict):
            logger.warning("Ignoring server frame without a state snapshot")
            return False
        self.on_snapshot_received(document)
        return True

    def on_snapshot_received(self, document: dict[str, Any]) -> None:
        state = normalize_state_document(document, missing_collections="empty")
        with self._lock:
            self.store.replace_state(state)
            self.conflicts = detect_conflicts(self.store)
        _notify(self._snapshot_listeners, state)

    # -- outbound --------------------------------------------------------

    def apply_local_mutation(self, mutation: Mutation) -> bool:
        """Apply ``mutation`` to the replica, then try to forward it.

        Returns whether the mutation was handed to an open connection.
        """
        with self._lock:
            apply_mutation(self.store, mutation)
            self.conflicts = detect_conflicts(self.store)
            transport = self._transport if self.status == "open" else None
            generation = self._generation

        if transport is None:
            logger.warning("WebSocket not connected. Action not sent: %s", mutation.type)
            return False
        try:
            transport.send(json.dumps(mutation_to_wire(mutation), ensure_ascii=False))
        except TransportError as exc:
            logger.warning("Action %s not sent: %s", mutation.type, exc.message)
            self._closed(generation)
            return False
        return True

    def add_schedule(self, entry: ScheduleEntryCreate) -> bool:
        return self.apply_local_mutation(AddSchedule(payload=entry))

    def bulk_add_schedule_for_event(self, event: EventActivity, day: int, period: int) -> bool:
        return self.apply_local_mutation(
            BulkAddScheduleForEvent(payload=BulkEventPayload(event=event, day=day, period=period))
        )

    def update_schedule(self, entry: ScheduleEntry) -> bool:
        return self.apply_local_mutation(UpdateSchedule(payload=entry))

    def delete_schedule(self, entry_id: str) -> bool:
        return self.apply_local_mutation(DeleteSchedule(payload=entry_id))

    def move_schedule(self, entry_id: str, new_day: int, new_period: int) -> bool:
        return self.apply_local_mutation(
            MoveSchedule(payload=MovePayload(id=entry_id, newDay=new_day, newPeriod=new_period))
        )

    def update_master_data(self, collection_type: str, items: list[dict[str, Any]]) -> bool:
        return self.apply_local_mutation(
            UpdateMasterData(payload=MasterDataPayload(collection_type=collection_type, items=items))
        )

    def set_settings(self, settings: TimetableSettings) -> bool:
        return self.apply_local_mutation(SetSettings(payload=settings))

    def set_institution_details(self, details: InstitutionDetails) -> bool:
        return self.apply_local_mutation(SetInstitutionDetails(payload=details))

    def set_academic_calendar(self, calendar: AcademicCalendar) -> bool:
        return self.apply_local_mutation(SetAcademicCalendar(payload=calendar))

    def set_print_settings(self, settings: PrintSettings) -> bool:
        return self.apply_local_mutation(SetPrintSettings(payload=settings))

    def clear_all_data(self) -> bool:
        return self.apply_local_mutation(ClearAllData())

    # -- reads -----------------------------------------------------------

    @property
    def state(self) -> FullTimetableState:
        return self.store.state

    def find_by_id(self, collection: str, item_id: str | None) -> Any | None:
        return self.store.find_by_id(collection, item_id)


def _notify(listeners: list[Callable[[Any], None]], value: Any) -> None:
    # Listener errors are logged; the remaining listeners still run.
    for listener in list(listeners):
        try:
            listener(value)
        except Exception:
            logger.exception("Sync listener %r failed", listener)
