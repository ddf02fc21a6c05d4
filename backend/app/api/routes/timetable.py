from fastapi import APIRouter, Depends

from app.api.deps import get_store
from app.core.exceptions import ResourceNotFoundError
from app.schemas.conflict import ConflictReport
from app.schemas.timetable import COLLECTION_NAMES
from app.schemas.workload import TeacherWorkload
from app.services.conflict_service import detect_conflicts
from app.services.store import TimetableStore
from app.services.workload import list_departments, workload_summary

router = APIRouter()


@router.get("/state")
def get_state(store: TimetableStore = Depends(get_store)) -> dict:
    return store.snapshot()


@router.get("/conflicts", response_model=ConflictReport)
def get_conflicts(store: TimetableStore = Depends(get_store)) -> ConflictReport:
    return ConflictReport(conflicts=detect_conflicts(store))


@router.get("/workload", response_model=list[TeacherWorkload])
def get_workload(store: TimetableStore = Depends(get_store)) -> list[TeacherWorkload]:
    return workload_summary(store)


@router.get("/departments", response_model=list[str])
def get_departments(store: TimetableStore = Depends(get_store)) -> list[str]:
    return list_departments(store)


@router.get("/{collection}/{item_id}")
def get_item(collection: str, item_id: str, store: TimetableStore = Depends(get_store)) -> dict:
    if collection not in COLLECTION_NAMES:
        raise ResourceNotFoundError("Collection", collection)
    item = store.find_by_id(collection, item_id)
    if item is None:
        raise ResourceNotFoundError(collection, item_id)
    return item.model_dump(mode="json", exclude_none=True)
