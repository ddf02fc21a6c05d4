"""Built-in dataset used on first start, after an unreadable state file,
and whenever a client asks to reset everything."""

from __future__ import annotations

import copy
from typing import Any

from app.schemas.timetable import FullTimetableState

DEFAULT_TEACHERS: list[dict[str, Any]] = [
    {"id": "T-101", "prefix": "นาย", "name": "สมชาย", "lastName": "ใจดี", "department": "กลุ่มสาระการเรียนรู้วิทยาศาสตร์และเทคโนโลยี", "teacherCode": "T101"},
    {"id": "T-102", "prefix": "นาง", "name": "สมศรี", "lastName": "มีสุข", "department": "กลุ่มสาระการเรียนรู้คณิตศาสตร์", "teacherCode": "T102"},
    {"id": "T-103", "prefix": "นางสาว", "name": "มานี", "lastName": "อดทน", "department": "กลุ่มสาระการเรียนรู้ภาษาไทย", "teacherCode": "T103"},
    {"id": "T-104", "prefix": "นาย", "name": "ปรีดา", "lastName": "รักเรียน", "department": "กลุ่มสาระการเรียนรู้สังคมศึกษา ศาสนา และวัฒนธรรม", "teacherCode": "T104"},
]

DEFAULT_SUBJECTS: list[dict[str, Any]] = [
    {"id": "S-ว21101", "subjectCode": "ว21101", "name": "วิทยาศาสตร์", "color": "bg-green-500", "textColor": "text-white", "isAcademic": True, "gradeLevel": "ม.1"},
    {"id": "S-ค21101", "subjectCode": "ค21101", "name": "คณิตศาสตร์", "color": "bg-blue-500", "textColor": "text-white", "isAcademic": True, "gradeLevel": "ม.1"},
    {"id": "S-ส21101", "subjectCode": "ส21101", "name": "สังคมศึกษา", "color": "bg-yellow-400", "textColor": "text-black", "isAcademic": True, "gradeLevel": "ม.1"},
    {"id": "S-อ21101", "subjectCode": "อ21101", "name": "ภาษาอังกฤษ", "color": "bg-red-500", "textColor": "text-white", "isAcademic": True, "gradeLevel": "ม.1"},
    {"id": "S-ท22101", "subjectCode": "ท22101", "name": "ภาษาไทย 3", "color": "bg-pink-500", "textColor": "text-white", "isAcademic": True, "gradeLevel": "ม.2"},
    {"id": "S-พ30203", "subjectCode": "พ30203", "name": "ฟิสิกส์ 3", "color": "bg-indigo-500", "textColor": "text-white", "isAcademic": True, "gradeLevel": "ม.3"},
    {"id": "S-ก20901", "subjectCode": "ก20901", "name": "ดูแลนักเรียน", "color": "bg-gray-400", "textColor": "text-black", "isAcademic": False, "gradeLevel": "ม.1-ม.3"},
]

DEFAULT_EVENTS: list[dict[str, Any]] = [
    {"id": "E-001", "name": "ลูกเสือ/เนตรนารี", "color": "bg-green-200", "textColor": "text-black", "affectedTeacherIds": ["T-101", "T-104"], "affectedClassGradeIds": ["C-101", "C-102"], "calculateWorkingHour": True},
    {"id": "E-002", "name": "ชุมนุม", "color": "bg-yellow-200", "textColor": "text-black", "affectedClassGradeIds": ["C-201"], "calculateWorkingHour": False},
    {"id": "E-003", "name": "คุณธรรม", "color": "bg-pink-200", "textColor": "text-black", "affectedClassGradeIds": ["C-101", "C-102", "C-201"], "calculateWorkingHour": False},
    {"id": "E-004", "name": "สภานักเรียน", "color": "bg-blue-200", "textColor": "text-black", "affectedTeacherIds": ["T-103"], "calculateWorkingHour": True},
]

DEFAULT_ROOMS: list[dict[str, Any]] = [
    {"id": "R-101", "name": "Room 101", "capacity": 1},
    {"id": "R-102", "name": "Room 102", "capacity": 1},
    {"id": "R-301", "name": "Science Lab", "capacity": 1},
    {"id": "R-501", "name": "Main Hall", "capacity": 5},
]

DEFAULT_CLASS_GRADES: list[dict[str, Any]] = [
    {"id": "C-101", "name": "ม.1/1", "gradeLevel": "ม.1", "advisorIds": ["T-101", "T-104"], "homeroomId": "R-101"},
    {"id": "C-102", "name": "ม.1/2", "gradeLevel": "ม.1", "homeroomId": "R-102"},
    {"id": "C-201", "name": "ม.2/1", "gradeLevel": "ม.2", "advisorIds": ["T-103"]},
]

DEFAULT_SCHEDULE: list[dict[str, Any]] = [
    {"id": "e1", "day": 0, "period": 0, "subjectId": "S-ค21101", "teacherIds": ["T-102"], "roomId": "R-101", "classGradeId": "C-101"},
    {"id": "e2", "day": 0, "period": 1, "subjectId": "S-ว21101", "teacherIds": ["T-101"], "roomId": "R-301", "classGradeId": "C-101"},
    {"id": "e3", "day": 1, "period": 2, "subjectId": "S-ส21101", "teacherIds": ["T-104"], "roomId": "R-102", "classGradeId": "C-201"},
    # co-taught
    {"id": "e-co", "day": 2, "period": 0, "subjectId": "S-อ21101", "teacherIds": ["T-101", "T-103"], "roomId": "R-101", "classGradeId": "C-101"},
    {"id": "e4", "day": 0, "period": 2, "subjectId": "S-พ30203", "teacherIds": ["T-101"], "roomId": "R-301", "classGradeId": "C-102"},
    {"id": "e5", "day": 0, "period": 3, "subjectId": "S-พ30203", "teacherIds": ["T-101"], "roomId": "R-301", "classGradeId": "C-102"},
    {"id": "e6", "day": 1, "period": 0, "subjectId": "S-ว21101", "teacherIds": ["T-101"], "roomId": "R-301", "classGradeId": "C-101"},
    {"id": "e7", "day": 1, "period": 4, "eventActivityId": "E-001", "classGradeId": "C-101"},
    {"id": "e7-clone", "day": 1, "period": 4, "eventActivityId": "E-001", "classGradeId": "C-102"},
    {"id": "e8", "day": 2, "period": 1, "subjectId": "S-พ30203", "teacherIds": ["T-101"], "roomId": "R-301", "classGradeId": "C-102"},
    {"id": "e9", "day": 2, "period": 2, "subjectId": "S-พ30203", "teacherIds": ["T-101"], "roomId": "R-301", "classGradeId": "C-102"},
    {"id": "e10", "day": 3, "period": 5, "eventActivityId": "E-002", "classGradeId": "C-201"},
    {"id": "e11", "day": 4, "period": 0, "subjectId": "S-พ30203", "teacherIds": ["T-101"], "roomId": "R-301", "classGradeId": "C-102"},
]

DEFAULT_SETTINGS: dict[str, Any] = {
    "daysPerWeek": 5,
    "periodsPerDay": 9,
    "periodTimes": [
        "08:30 - 09:20",
        "09:20 - 10:10",
        "10:25 - 11:15",
        "11:15 - 12:05",
        "13:00 - 13:50",
        "13:50 - 14:40",
        "14:50 - 15:40",
        "15:40 - 16:30",
        "16:30 - 17:20",
    ],
    "minutesPerPeriod": 50,
    "standardWeeklyHours": 35,
    "workloadMinHours": 18,
    "workloadMaxHours": 25,
}

DEFAULT_INSTITUTION_DETAILS: dict[str, Any] = {
    "name": "Springfield University",
    "logo": "",
    "deputyDirectorName": "",
    "schoolDirectorName": "",
    "deputyDirectorSignature": "",
    "schoolDirectorSignature": "",
}

DEFAULT_ACADEMIC_CALENDAR: dict[str, Any] = {
    "year": "2024-2025",
    "semester": "1",
    "startDate": "2024-09-01",
    "endDate": "2025-06-15",
    "holidays": [
        {"id": "h1", "date": "2024-12-25", "description": "Winter Break"},
        {"id": "h2", "date": "2025-04-18", "description": "Spring Break"},
    ],
}

DEFAULT_PRINT_SETTINGS: dict[str, Any] = {
    "paperSize": "A4",
    "orientation": "landscape",
    "marginTop": "1",
    "marginBottom": "1",
    "marginLeft": "1",
    "marginRight": "1",
    "showLogo": True,
    "fontFamily": "Sarabun",
    "colorMode": "color",
}


def default_state_document() -> dict[str, Any]:
    """Raw JSON-shaped defaults, freshly built on every call."""
    return copy.deepcopy(
        {
            "schedule": DEFAULT_SCHEDULE,
            "teachers": DEFAULT_TEACHERS,
            "subjects": DEFAULT_SUBJECTS,
            "eventActivities": DEFAULT_EVENTS,
            "rooms": DEFAULT_ROOMS,
            "classGrades": DEFAULT_CLASS_GRADES,
            "settings": DEFAULT_SETTINGS,
            "institutionDetails": DEFAULT_INSTITUTION_DETAILS,
            "academicCalendar": DEFAULT_ACADEMIC_CALENDAR,
            "printSettings": DEFAULT_PRINT_SETTINGS,
        }
    )


def default_state() -> FullTimetableState:
    return FullTimetableState.model_validate(default_state_document())
