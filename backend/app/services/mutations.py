from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from typing import assert_never

from app.db.defaults import default_state
from app.schemas.mutation import (
    AddSchedule,
    BulkAddScheduleForEvent,
    ClearAllData,
    DeleteSchedule,
    MoveSchedule,
    Mutation,
    SetAcademicCalendar,
    SetInstitutionDetails,
    SetPrintSettings,
    SetSettings,
    UpdateMasterData,
    UpdateSchedule,
)
from app.schemas.timetable import COLLECTION_NAMES, ScheduleEntry
from app.services.store import TimetableStore

logger = logging.getLogger(__name__)

IdFactory = Callable[[], str]


def new_entry_id() -> str:
    return str(uuid.uuid4())


def apply_mutation(store: TimetableStore, mutation: Mutation, *, id_factory: IdFactory = new_entry_id) -> None:
    """Apply one mutation to the store.

    Targets that do not exist (an id missing from the schedule, an unknown
    collection name) leave the store untouched. Validation failures of the
    resulting values raise ValueError before anything is replaced.
    """
    match mutation:
        case AddSchedule(payload=entry):
            created = ScheduleEntry(**entry.model_dump(), id=id_factory())
            store.replace_collection("schedule", [*store.state.schedule, created])

        case BulkAddScheduleForEvent(payload=bulk):
            class_ids = bulk.event.affectedClassGradeIds or []
            if class_ids:
                created = [
                    ScheduleEntry(
                        id=id_factory(),
                        day=bulk.day,
                        period=bulk.period,
                        eventActivityId=bulk.event.id,
                        classGradeId=class_id,
                    )
                    for class_id in class_ids
                ]
            else:
                created = [ScheduleEntry(id=id_factory(), day=bulk.day, period=bulk.period, eventActivityId=bulk.event.id)]
            store.replace_collection("schedule", [*store.state.schedule, *created])

        case UpdateSchedule(payload=updated):
            if store.find_by_id("schedule", updated.id) is None:
                return
            store.replace_collection(
                "schedule",
                [updated if entry.id == updated.id else entry for entry in store.state.schedule],
            )

        case DeleteSchedule(payload=entry_id):
            if store.find_by_id("schedule", entry_id) is None:
                return
            store.replace_collection(
                "schedule",
                [entry for entry in store.state.schedule if entry.id != entry_id],
            )

        case MoveSchedule(payload=move):
            if store.find_by_id("schedule", move.id) is None:
                return
            store.replace_collection(
                "schedule",
                [
                    entry.model_copy(update={"day": move.newDay, "period": move.newPeriod})
                    if entry.id == move.id
                    else entry
                    for entry in store.state.schedule
                ],
            )

        case UpdateMasterData(payload=master):
            if master.collection_type not in COLLECTION_NAMES:
                logger.warning("Attempted to update invalid master data type: %s", master.collection_type)
                return
            store.replace_collection(master.collection_type, master.items)

        case SetSettings(payload=value):
            _merge_singleton(store, "settings", value)

        case SetInstitutionDetails(payload=value):
            _merge_singleton(store, "institutionDetails", value)

        case SetAcademicCalendar(payload=value):
            _merge_singleton(store, "academicCalendar", value)

        case SetPrintSettings(payload=value):
            _merge_singleton(store, "printSettings", value)

        case ClearAllData():
            store.replace_state(default_state())

        case _:
            assert_never(mutation)


def _merge_singleton(store: TimetableStore, name: str, value) -> None:
    # Shallow overwrite: only the keys the sender set replace the current ones.
    current = store.singleton(name)
    merged = {**current.model_dump(), **value.model_dump(exclude_unset=True)}
    store.replace_singleton(name, merged)
