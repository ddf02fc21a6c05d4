from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

MasterDataType = Literal["teachers", "subjects", "rooms", "classGrades", "eventActivities"]

COLLECTION_NAMES: tuple[str, ...] = (
    "schedule",
    "teachers",
    "subjects",
    "eventActivities",
    "rooms",
    "classGrades",
)
SINGLETON_NAMES: tuple[str, ...] = (
    "settings",
    "institutionDetails",
    "academicCalendar",
    "printSettings",
)


class MasterDataItem(BaseModel):
    # Records coming from imports or newer clients may carry extra columns.
    model_config = ConfigDict(extra="allow")

    id: str = Field(min_length=1)
    name: str = ""


class Teacher(MasterDataItem):
    prefix: str = ""
    lastName: str = ""
    department: str = ""
    teacherCode: str = ""


class Subject(MasterDataItem):
    subjectCode: str = ""
    color: str = ""
    textColor: str = ""
    isAcademic: bool = True
    gradeLevel: str = ""


class EventActivity(MasterDataItem):
    color: str = ""
    textColor: str = ""
    affectedTeacherIds: list[str] | None = None
    affectedClassGradeIds: list[str] | None = None
    calculateWorkingHour: bool | None = None


class Room(MasterDataItem):
    capacity: int = Field(default=1, ge=1)


class ClassGrade(MasterDataItem):
    gradeLevel: str = ""
    advisorIds: list[str] | None = None
    homeroomId: str | None = None


class ScheduleEntryCreate(BaseModel):
    """A schedule entry as submitted by a client, before an id is assigned."""

    day: int = Field(ge=0)
    period: int = Field(ge=0)
    subjectId: str | None = None
    teacherIds: list[str] | None = None
    roomId: str | None = None
    classGradeId: str | None = None
    eventActivityId: str | None = None


class ScheduleEntry(ScheduleEntryCreate):
    id: str = Field(min_length=1)

    @property
    def is_event(self) -> bool:
        return bool(self.eventActivityId)


class TimetableSettings(BaseModel):
    model_config = ConfigDict(extra="allow")

    daysPerWeek: int = Field(default=5, ge=1, le=7)
    periodsPerDay: int = Field(default=9, ge=1)
    periodTimes: list[str] = Field(default_factory=list)
    minutesPerPeriod: int = Field(default=50, ge=0)
    standardWeeklyHours: float = 35
    workloadMinHours: float = 18
    workloadMaxHours: float = 25


class InstitutionDetails(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str = ""
    logo: str = ""
    deputyDirectorName: str = ""
    schoolDirectorName: str = ""
    deputyDirectorSignature: str = ""
    schoolDirectorSignature: str = ""


class Holiday(BaseModel):
    id: str
    date: str
    description: str = ""


class AcademicCalendar(BaseModel):
    model_config = ConfigDict(extra="allow")

    year: str = ""
    semester: str = ""
    startDate: str = ""
    endDate: str = ""
    holidays: list[Holiday] = Field(default_factory=list)


class PrintSettings(BaseModel):
    model_config = ConfigDict(extra="allow")

    paperSize: Literal["A4", "Letter"] = "A4"
    orientation: Literal["portrait", "landscape"] = "landscape"
    marginTop: str = "1"
    marginBottom: str = "1"
    marginLeft: str = "1"
    marginRight: str = "1"
    showLogo: bool = True
    fontFamily: str = "Sarabun"
    colorMode: Literal["color", "bw"] = "color"


class FullTimetableState(BaseModel):
    """Complete canonical state; also the shape of every snapshot frame."""

    schedule: list[ScheduleEntry] = Field(default_factory=list)
    teachers: list[Teacher] = Field(default_factory=list)
    subjects: list[Subject] = Field(default_factory=list)
    eventActivities: list[EventActivity] = Field(default_factory=list)
    rooms: list[Room] = Field(default_factory=list)
    classGrades: list[ClassGrade] = Field(default_factory=list)
    settings: TimetableSettings = Field(default_factory=TimetableSettings)
    institutionDetails: InstitutionDetails = Field(default_factory=InstitutionDetails)
    academicCalendar: AcademicCalendar = Field(default_factory=AcademicCalendar)
    printSettings: PrintSettings = Field(default_factory=PrintSettings)


COLLECTION_MODELS: dict[str, type[BaseModel]] = {
    "schedule": ScheduleEntry,
    "teachers": Teacher,
    "subjects": Subject,
    "eventActivities": EventActivity,
    "rooms": Room,
    "classGrades": ClassGrade,
}

SINGLETON_MODELS: dict[str, type[BaseModel]] = {
    "settings": TimetableSettings,
    "institutionDetails": InstitutionDetails,
    "academicCalendar": AcademicCalendar,
    "printSettings": PrintSettings,
}
