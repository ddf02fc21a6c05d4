import json

import pytest

from app.client.agent import SyncAgent
from app.core.exceptions import TransportError
from app.db.defaults import default_state
from app.schemas.timetable import ScheduleEntryCreate, TimetableSettings
from app.services.store import TimetableStore


class FakeTransport:
    def __init__(self, on_message, on_close, fail_sends=False):
        self.on_message = on_message
        self.on_close = on_close
        self.fail_sends = fail_sends
        self.sent = []
        self.closed = False

    def send(self, message):
        if self.fail_sends:
            raise TransportError("socket gone")
        self.sent.append(json.loads(message))

    def close(self):
        self.closed = True


class FakeServer:
    """Transport factory that records every connection it hands out."""

    def __init__(self, fail_connects=False, fail_sends=False):
        self.fail_connects = fail_connects
        self.fail_sends = fail_sends
        self.transports = []

    def __call__(self, on_message, on_close):
        if self.fail_connects:
            raise TransportError("connection refused")
        transport = FakeTransport(on_message, on_close, fail_sends=self.fail_sends)
        self.transports.append(transport)
        return transport

    @property
    def current(self):
        return self.transports[-1]


class FakeTimer:
    created = []

    def __init__(self, interval, function):
        self.interval = interval
        self.function = function
        self.cancelled = False
        self.daemon = False
        FakeTimer.created.append(self)

    def start(self):
        pass

    def cancel(self):
        self.cancelled = True


@pytest.fixture()
def fake_timers(monkeypatch):
    FakeTimer.created = []
    monkeypatch.setattr("app.client.agent.threading.Timer", FakeTimer)
    return FakeTimer.created


def _snapshot(**changes):
    document = TimetableStore(default_state()).snapshot()
    document.update(changes)
    return json.dumps(document)


def _entry(**overrides):
    values = {"day": 4, "period": 8, "subjectId": "S-ค21101", "teacherIds": ["T-102"], "classGradeId": "C-201"}
    values.update(overrides)
    return ScheduleEntryCreate(**values)


def test_offline_mutation_is_kept_locally_but_not_sent():
    server = FakeServer()
    agent = SyncAgent(server)

    assert agent.status == "closed"
    assert agent.delete_schedule("e1") is False

    assert agent.find_by_id("schedule", "e1") is None
    assert server.transports == []


def test_connect_reports_status_transitions():
    agent = SyncAgent(FakeServer())
    statuses = []
    agent.on_status_change(statuses.append)

    assert agent.connect() == "open"
    agent.close()

    assert statuses == ["connecting", "open", "closed"]


def test_failed_connect_ends_closed():
    agent = SyncAgent(FakeServer(fail_connects=True))
    statuses = []
    agent.on_status_change(statuses.append)

    assert agent.connect() == "closed"
    assert statuses == ["connecting", "closed"]


def test_local_mutation_is_applied_and_forwarded():
    server = FakeServer()
    agent = SyncAgent(server)
    agent.connect()

    assert agent.move_schedule("e1", 3, 6) is True

    moved = agent.find_by_id("schedule", "e1")
    assert (moved.day, moved.period) == (3, 6)
    assert server.current.sent == [{"type": "moveSchedule", "payload": {"id": "e1", "newDay": 3, "newPeriod": 6}}]


def test_conflicts_are_recomputed_after_local_change():
    agent = SyncAgent(FakeServer())
    assert len(agent.conflicts) == 2

    agent.delete_schedule("e7")

    assert agent.conflicts == []


def test_server_snapshot_overrides_optimistic_changes():
    server = FakeServer()
    agent = SyncAgent(server)
    agent.connect()
    agent.set_settings(TimetableSettings(daysPerWeek=7))
    agent.add_schedule(_entry())
    assert agent.state.settings.daysPerWeek == 7

    server.current.on_message(_snapshot())

    assert agent.state.settings.daysPerWeek == 5
    assert not any(entry.period == 8 for entry in agent.state.schedule)


def test_same_snapshot_twice_yields_same_replica():
    server = FakeServer()
    agent = SyncAgent(server)
    agent.connect()
    received = []
    agent.on_snapshot(received.append)
    frame = _snapshot(rooms=[{"id": "R-9", "name": "Gym", "capacity": 2}])

    server.current.on_message(frame)
    first = agent.store.snapshot()
    server.current.on_message(frame)

    assert agent.store.snapshot() == first
    assert [room.id for room in agent.state.rooms] == ["R-9"]
    assert len(received) == 2


def test_snapshot_missing_collections_empties_them():
    server = FakeServer()
    agent = SyncAgent(server)
    agent.connect()

    server.current.on_message(json.dumps({"settings": {"daysPerWeek": 6}}))

    assert agent.state.schedule == []
    assert agent.state.teachers == []
    assert agent.state.settings.daysPerWeek == 6
    assert agent.state.settings.periodsPerDay == 9


def test_frames_without_state_are_ignored():
    agent = SyncAgent(FakeServer())
    before = agent.store.snapshot()

    assert agent.handle_message("{broken") is False
    assert agent.handle_message(json.dumps({"type": "ack"})) is False
    assert agent.handle_message(json.dumps([1, 2])) is False

    assert agent.store.snapshot() == before


def test_retry_replaces_previous_connection():
    server = FakeServer()
    agent = SyncAgent(server)
    agent.connect()
    old = server.current

    assert agent.retry_connection() == "open"

    assert old.closed is True
    assert len(server.transports) == 2
    # frames and close events from the replaced connection are ignored
    old.on_message(_snapshot(schedule=[]))
    old.on_close()
    assert agent.status == "open"
    assert agent.find_by_id("schedule", "e1") is not None


def test_server_close_marks_agent_closed():
    server = FakeServer()
    agent = SyncAgent(server)
    agent.connect()

    server.current.on_close()

    assert agent.status == "closed"
    assert agent.delete_schedule("e2") is False


def test_send_failure_closes_connection():
    agent = SyncAgent(FakeServer(fail_sends=True))
    agent.connect()

    assert agent.clear_all_data() is False
    assert agent.status == "closed"


def test_no_reconnect_without_opt_in(fake_timers):
    agent = SyncAgent(FakeServer(fail_connects=True))

    agent.connect()

    assert fake_timers == []


def test_auto_reconnect_backs_off_until_attempt_cap(fake_timers):
    agent = SyncAgent(FakeServer(fail_connects=True), auto_reconnect=True, max_reconnect_attempts=5)

    agent.connect()
    ran = 0
    while ran < len(fake_timers):
        fake_timers[ran].function()
        ran += 1

    assert [timer.interval for timer in fake_timers] == [1.0, 2.0, 4.0, 8.0, 16.0]
    assert agent.status == "closed"
    assert agent.reconnect_attempts == 5


def test_successful_reconnect_resets_attempts(fake_timers):
    server = FakeServer(fail_connects=True)
    agent = SyncAgent(server, auto_reconnect=True)
    agent.connect()
    assert agent.reconnect_attempts == 1

    server.fail_connects = False
    fake_timers[0].function()

    assert agent.status == "open"
    assert agent.reconnect_attempts == 0


def test_close_cancels_pending_reconnect(fake_timers):
    agent = SyncAgent(FakeServer(fail_connects=True), auto_reconnect=True)
    agent.connect()

    agent.close()

    assert fake_timers[0].cancelled is True


def test_backoff_is_capped():
    agent = SyncAgent(FakeServer(), initial_backoff=1.0, max_backoff=30.0)

    delays = []
    for attempts in range(7):
        agent.reconnect_attempts = attempts
        delays.append(agent.next_backoff())

    assert delays == [1.0, 2.0, 4.0, 8.0, 16.0, 30.0, 30.0]


def test_agent_for_unreachable_url_works_offline():
    agent = SyncAgent.for_url("ws://127.0.0.1:9/api/sync/ws")
    assert agent.status == "closed"

    assert agent.connect() == "closed"
    assert agent.delete_schedule("e1") is False
    assert agent.find_by_id("schedule", "e1") is None


def test_listener_errors_do_not_drop_the_connection(caplog):
    server = FakeServer()
    agent = SyncAgent(server)
    seen = []

    def broken(_value):
        raise RuntimeError("redraw failed")

    agent.on_status_change(broken)
    agent.on_snapshot(broken)
    agent.on_snapshot(seen.append)

    assert agent.connect() == "open"
    server.current.on_message(_snapshot())

    assert len(seen) == 1
    assert agent.status == "open"
    assert agent.delete_schedule("e1") is True
    assert "redraw failed" in caplog.text
