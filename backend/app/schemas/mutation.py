from __future__ import annotations

import json
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from app.core.exceptions import MalformedMutationError, UnknownMutationError
from app.schemas.timetable import (
    AcademicCalendar,
    EventActivity,
    InstitutionDetails,
    PrintSettings,
    ScheduleEntry,
    ScheduleEntryCreate,
    TimetableSettings,
)


class BulkEventPayload(BaseModel):
    event: EventActivity
    day: int = Field(ge=0)
    period: int = Field(ge=0)


class MovePayload(BaseModel):
    id: str = Field(min_length=1)
    newDay: int = Field(ge=0)
    newPeriod: int = Field(ge=0)


class MasterDataPayload(BaseModel):
    # Wire keys are `type` / `data`, as sent by existing clients.
    model_config = ConfigDict(populate_by_name=True)

    collection_type: str = Field(alias="type", min_length=1)
    items: list[dict[str, Any]] = Field(alias="data", default_factory=list)


class AddSchedule(BaseModel):
    type: Literal["addSchedule"] = "addSchedule"
    payload: ScheduleEntryCreate


class BulkAddScheduleForEvent(BaseModel):
    type: Literal["bulkAddScheduleForEvent"] = "bulkAddScheduleForEvent"
    payload: BulkEventPayload


class UpdateSchedule(BaseModel):
    type: Literal["updateSchedule"] = "updateSchedule"
    payload: ScheduleEntry


class DeleteSchedule(BaseModel):
    type: Literal["deleteSchedule"] = "deleteSchedule"
    payload: str = Field(min_length=1)


class MoveSchedule(BaseModel):
    type: Literal["moveSchedule"] = "moveSchedule"
    payload: MovePayload


class UpdateMasterData(BaseModel):
    type: Literal["updateMasterData"] = "updateMasterData"
    payload: MasterDataPayload


class SetSettings(BaseModel):
    type: Literal["setSettings"] = "setSettings"
    payload: TimetableSettings


class SetInstitutionDetails(BaseModel):
    type: Literal["setInstitutionDetails"] = "setInstitutionDetails"
    payload: InstitutionDetails


class SetAcademicCalendar(BaseModel):
    type: Literal["setAcademicCalendar"] = "setAcademicCalendar"
    payload: AcademicCalendar


class SetPrintSettings(BaseModel):
    type: Literal["setPrintSettings"] = "setPrintSettings"
    payload: PrintSettings


class ClearAllData(BaseModel):
    type: Literal["clearAllData"] = "clearAllData"
    payload: None = None


Mutation = Annotated[
    Union[
        AddSchedule,
        BulkAddScheduleForEvent,
        UpdateSchedule,
        DeleteSchedule,
        MoveSchedule,
        UpdateMasterData,
        SetSettings,
        SetInstitutionDetails,
        SetAcademicCalendar,
        SetPrintSettings,
        ClearAllData,
    ],
    Field(discriminator="type"),
]

MUTATION_TYPES: frozenset[str] = frozenset(
    {
        "addSchedule",
        "bulkAddScheduleForEvent",
        "updateSchedule",
        "deleteSchedule",
        "moveSchedule",
        "updateMasterData",
        "setSettings",
        "setInstitutionDetails",
        "setAcademicCalendar",
        "setPrintSettings",
        "clearAllData",
    }
)

_mutation_adapter: TypeAdapter[Mutation] = TypeAdapter(Mutation)


def parse_mutation(raw: str | bytes | dict[str, Any]) -> Mutation:
    """Decode one client frame into a typed mutation.

    Raises MalformedMutationError for undecodable frames or invalid payloads
    and UnknownMutationError for a well-formed frame of an unsupported kind.
    """
    if isinstance(raw, (str, bytes)):
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise MalformedMutationError(f"Message is not valid JSON: {exc}") from exc
    else:
        data = raw

    if not isinstance(data, dict):
        raise MalformedMutationError("Message must be a JSON object")

    kind = data.get("type")
    if kind not in MUTATION_TYPES:
        raise UnknownMutationError(str(kind))

    try:
        return _mutation_adapter.validate_python(data)
    except ValidationError as exc:
        raise MalformedMutationError(
            f"Invalid payload for {kind}",
            details={"errors": exc.errors(include_url=False, include_context=False)},
        ) from exc


def mutation_to_wire(mutation: Mutation) -> dict[str, Any]:
    payload = mutation.payload
    if isinstance(payload, BaseModel):
        # Only the fields the caller set travel, so singleton updates stay shallow merges.
        payload = payload.model_dump(mode="json", by_alias=True, exclude_unset=True)
    return {"type": mutation.type, "payload": payload}
