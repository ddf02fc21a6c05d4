import asyncio

from app.db.defaults import default_state
from app.schemas.mutation import DeleteSchedule
from app.services.autosave import AutosaveTask
from app.services.persistence import StateRepository
from app.services.store import TimetableStore
from app.services.sync_hub import SyncHub
from app.services.sync_server import SyncServer


async def _wait_until(predicate, timeout=2.0):
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            return False
        await asyncio.sleep(0.01)
    return True


def test_failed_tick_is_retried_on_a_later_tick(tmp_path):
    target = tmp_path / "database.json"
    target.mkdir()  # a directory in the way makes every save fail
    server = SyncServer(TimetableStore(default_state()), StateRepository(target), SyncHub())

    async def scenario():
        autosave = AutosaveTask(server, 0.02)
        autosave.start()
        assert autosave.running

        await asyncio.sleep(0.1)
        assert server.dirty is True
        assert server.repository.last_saved_at is None

        target.rmdir()
        saved = await _wait_until(lambda: not server.dirty)

        await autosave.stop()
        assert not autosave.running
        return saved

    assert asyncio.run(scenario()) is True
    assert target.is_file()


def test_ticks_only_write_when_state_changed(tmp_path):
    server = SyncServer(TimetableStore(default_state()), StateRepository(tmp_path / "database.json"), SyncHub())

    async def scenario():
        autosave = AutosaveTask(server, 0.02)
        autosave.start()
        assert await _wait_until(lambda: not server.dirty)
        first_save = server.repository.last_saved_at

        await asyncio.sleep(0.1)
        assert server.repository.last_saved_at == first_save

        server.apply(DeleteSchedule(payload="e1"))
        assert await _wait_until(lambda: server.repository.last_saved_at != first_save)
        await autosave.stop()

    asyncio.run(scenario())
    assert '"e1"' not in (tmp_path / "database.json").read_text(encoding="utf-8")


def test_stop_without_start_is_a_no_op(tmp_path):
    server = SyncServer(TimetableStore(), StateRepository(tmp_path / "database.json"), SyncHub())

    asyncio.run(AutosaveTask(server, 1).stop())
