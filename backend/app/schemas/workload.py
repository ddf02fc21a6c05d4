from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

WorkloadStatus = Literal["onTrack", "belowStandard", "overloaded"]


class WorkloadRow(BaseModel):
    id: str
    codeName: str
    periodsPerWeek: int
    classes: list[str]
    isAcademic: bool


class TeacherWorkload(BaseModel):
    teacherId: str
    teacherName: str
    department: str
    advisorFor: list[str]
    rows: list[WorkloadRow]
    totalAcademicPeriods: int
    totalAllPeriods: int
    totalHoursPerWeek: float
    workloadStatus: WorkloadStatus
