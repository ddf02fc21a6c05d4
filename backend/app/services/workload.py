from __future__ import annotations

import math
from collections import defaultdict

from app.schemas.timetable import ScheduleEntry, Teacher
from app.schemas.workload import TeacherWorkload, WorkloadRow, WorkloadStatus
from app.services.store import TimetableStore


def list_departments(store: TimetableStore) -> list[str]:
    return sorted({teacher.department for teacher in store.state.teachers if teacher.department})


def workload_status(hours: float, min_hours: float, max_hours: float) -> WorkloadStatus:
    if hours < min_hours:
        return "belowStandard"
    if hours > max_hours:
        return "overloaded"
    return "onTrack"


def _teaches(store: TimetableStore, entry: ScheduleEntry, teacher_id: str) -> bool:
    if teacher_id in (entry.teacherIds or []):
        return True
    if entry.eventActivityId:
        event = store.find_by_id("eventActivities", entry.eventActivityId)
        return event is not None and teacher_id in (event.affectedTeacherIds or [])
    return False


def _counts_toward_hours(store: TimetableStore, entry: ScheduleEntry) -> bool:
    if entry.subjectId:
        return store.find_by_id("subjects", entry.subjectId) is not None
    if entry.eventActivityId:
        event = store.find_by_id("eventActivities", entry.eventActivityId)
        return event is not None and event.calculateWorkingHour is True
    return False


def _rows(store: TimetableStore, entries: list[ScheduleEntry]) -> list[WorkloadRow]:
    grouped: dict[str, list[ScheduleEntry]] = defaultdict(list)
    for entry in entries:
        grouped[entry.subjectId or entry.eventActivityId or "unknown"].append(entry)

    rows: list[WorkloadRow] = []
    for item_id, item_entries in grouped.items():
        subject = store.find_by_id("subjects", item_id)
        event = None if subject is not None else store.find_by_id("eventActivities", item_id)
        if subject is None and event is None:
            continue

        class_ids = list(dict.fromkeys(entry.classGradeId for entry in item_entries if entry.classGradeId))
        if class_ids:
            periods = sum(1 for entry in item_entries if entry.classGradeId == class_ids[0])
        else:
            periods = len(item_entries)
        class_names = [
            class_grade.name
            for class_grade in (store.find_by_id("classGrades", class_id) for class_id in class_ids)
            if class_grade is not None and class_grade.name
        ]

        if subject is not None:
            code_name = f"[{subject.subjectCode}] {subject.name}"
            is_academic = subject.isAcademic
        else:
            code_name = event.name
            is_academic = bool(event.calculateWorkingHour)

        rows.append(WorkloadRow(
            id=item_id,
            codeName=code_name,
            periodsPerWeek=periods,
            classes=class_names,
            isAcademic=is_academic,
        ))
    return rows


def teacher_workload(store: TimetableStore, teacher: Teacher) -> TeacherWorkload:
    settings = store.state.settings
    entries = [entry for entry in store.state.schedule if _teaches(store, entry, teacher.id)]

    academic = 0
    for entry in entries:
        subject = store.find_by_id("subjects", entry.subjectId)
        if subject is not None and subject.isAcademic:
            academic += 1
    total = sum(1 for entry in entries if _counts_toward_hours(store, entry))

    minutes_per_period = settings.minutesPerPeriod or 0
    min_hours = settings.workloadMinHours or 0
    max_hours = settings.workloadMaxHours or math.inf
    hours = total * minutes_per_period / 60

    advisor_for = [
        class_grade.name
        for class_grade in store.state.classGrades
        if teacher.id in (class_grade.advisorIds or [])
    ]
    name = " ".join(part for part in (teacher.prefix, teacher.name, teacher.lastName) if part)

    return TeacherWorkload(
        teacherId=teacher.id,
        teacherName=name,
        department=teacher.department,
        advisorFor=advisor_for,
        rows=_rows(store, entries),
        totalAcademicPeriods=academic,
        totalAllPeriods=total,
        totalHoursPerWeek=hours,
        workloadStatus=workload_status(hours, min_hours, max_hours),
    )


def workload_summary(store: TimetableStore) -> list[TeacherWorkload]:
    # Named departments alphabetically, teachers without one last; input order kept within a group.
    teachers = sorted(store.state.teachers, key=lambda teacher: (not teacher.department, teacher.department))
    return [teacher_workload(store, teacher) for teacher in teachers]
