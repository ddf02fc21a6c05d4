import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.main import create_app
from app.schemas.timetable import FullTimetableState
from app.services.store import TimetableStore


@pytest.fixture()
def settings(tmp_path):
    # every test gets its own state file; the autosave interval is long enough never to fire
    return Settings(
        state_file_path=str(tmp_path / "database.json"),
        save_interval_seconds=3600,
        log_level="WARNING",
    )


@pytest.fixture()
def client(settings):
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def make_store():
    def _make(**collections) -> TimetableStore:
        return TimetableStore(FullTimetableState.model_validate(collections))

    return _make
