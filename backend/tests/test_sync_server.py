import json

from fastapi.testclient import TestClient

from app.client.agent import SyncAgent
from app.main import create_app
from app.schemas.timetable import ScheduleEntryCreate, TimetableSettings

SYNC_PATH = "/api/sync/ws"


class TestClientTransport:
    """Drives an agent over a TestClient websocket; frames are delivered by pump()."""

    def __init__(self, client, on_message, on_close):
        self._context = client.websocket_connect(SYNC_PATH)
        self.session = self._context.__enter__()
        self._on_message = on_message
        self._on_close = on_close

    def pump(self, count=1):
        for _ in range(count):
            self._on_message(self.session.receive_text())

    def send(self, message):
        self.session.send_text(message)

    def close(self):
        self._context.__exit__(None, None, None)


def _connect_agent(client):
    transports = []

    def factory(on_message, on_close):
        transport = TestClientTransport(client, on_message, on_close)
        transports.append(transport)
        return transport

    agent = SyncAgent(factory)
    assert agent.connect() == "open"
    transports[0].pump()  # initial snapshot
    return agent, transports[0]


def test_new_connection_receives_full_snapshot(client):
    with client.websocket_connect(SYNC_PATH) as websocket:
        snapshot = websocket.receive_json()

    assert snapshot["settings"]["daysPerWeek"] == 5
    assert {entry["id"] for entry in snapshot["schedule"]} >= {"e1", "e7", "e7-clone"}


def test_mutation_is_broadcast_to_every_client(client):
    with client.websocket_connect(SYNC_PATH) as first, client.websocket_connect(SYNC_PATH) as second:
        first.receive_json()
        second.receive_json()

        first.send_json({"type": "deleteSchedule", "payload": "e1"})

        for websocket in (first, second):
            snapshot = websocket.receive_json()
            assert "e1" not in {entry["id"] for entry in snapshot["schedule"]}


def test_malformed_frame_is_dropped_without_broadcast(client):
    with client.websocket_connect(SYNC_PATH) as websocket:
        websocket.receive_json()

        websocket.send_text("{this is not json")
        websocket.send_json({"type": "moveSchedule", "payload": {"id": "e1"}})
        websocket.send_json({"type": "moveSchedule", "payload": {"id": "e1", "newDay": 4, "newPeriod": 7}})

        # the first frame received after the bad ones already reflects the good move
        snapshot = websocket.receive_json()
        moved = next(entry for entry in snapshot["schedule"] if entry["id"] == "e1")
        assert (moved["day"], moved["period"]) == (4, 7)


def test_unknown_kind_still_broadcasts_unchanged_state(client):
    with client.websocket_connect(SYNC_PATH) as websocket:
        before = websocket.receive_json()

        websocket.send_json({"type": "renameSchool", "payload": {"name": "x"}})

        assert websocket.receive_json() == before


def test_add_schedule_ids_are_assigned_by_server(client):
    with client.websocket_connect(SYNC_PATH) as websocket:
        websocket.receive_json()
        entry = {"day": 0, "period": 8, "subjectId": "S-ค21101", "teacherIds": ["T-102"], "classGradeId": "C-201"}

        websocket.send_json({"type": "addSchedule", "payload": entry})
        websocket.receive_json()
        websocket.send_json({"type": "addSchedule", "payload": entry})
        snapshot = websocket.receive_json()

    added = [item for item in snapshot["schedule"] if item["period"] == 8 and item["day"] == 0]
    assert len(added) == 2
    assert added[0]["id"] != added[1]["id"]


def test_two_agents_converge_on_both_concurrent_mutations(client):
    first, first_transport = _connect_agent(client)
    second, second_transport = _connect_agent(client)

    assert first.set_settings(TimetableSettings(daysPerWeek=6)) is True
    # the second agent has not seen the settings broadcast yet
    assert second.state.settings.daysPerWeek == 5
    assert second.add_schedule(
        ScheduleEntryCreate(day=5, period=0, subjectId="S-ค21101", teacherIds=["T-102"], roomId="R-102", classGradeId="C-102")
    ) is True

    first_transport.pump(2)
    second_transport.pump(2)

    assert first.store.snapshot() == second.store.snapshot()
    final = first.state
    assert final.settings.daysPerWeek == 6
    assert any(entry.day == 5 and entry.classGradeId == "C-102" for entry in final.schedule)

    first.close()
    second.close()


def test_shutdown_writes_final_state(settings):
    app = create_app(settings)
    with TestClient(app) as client:
        with client.websocket_connect(SYNC_PATH) as websocket:
            websocket.receive_json()
            websocket.send_json({"type": "setInstitutionDetails", "payload": {"name": "Riverside School"}})
            websocket.receive_json()

    with open(settings.state_file_path, encoding="utf-8") as handle:
        saved = json.load(handle)
    assert saved["institutionDetails"]["name"] == "Riverside School"
    assert saved["institutionDetails"]["logo"] == ""


def test_restart_reloads_persisted_state(settings):
    with TestClient(create_app(settings)) as client:
        with client.websocket_connect(SYNC_PATH) as websocket:
            websocket.receive_json()
            websocket.send_json({"type": "clearAllData", "payload": None})
            websocket.receive_json()
            websocket.send_json({"type": "updateMasterData", "payload": {"type": "schedule", "data": []}})
            websocket.receive_json()

    with TestClient(create_app(settings)) as client:
        assert client.get("/api/timetable/state").json()["schedule"] == []
