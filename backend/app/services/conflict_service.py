from collections import defaultdict
from typing import Dict, List, Sequence, Tuple

from app.schemas.conflict import Conflict
from app.schemas.timetable import ScheduleEntry
from app.services.store import TimetableStore


class ConflictService:
    """Finds teachers, rooms and classes used beyond their limit within one slot.

    Resources whose id no longer resolves in the store are never reported,
    since there is no name to show for them.
    """

    def __init__(self, schedule: Sequence[ScheduleEntry], store: TimetableStore):
        self.schedule = schedule
        self.store = store

    def detect_conflicts(self) -> List[Conflict]:
        conflicts: List[Conflict] = []

        slots: Dict[Tuple[int, int], List[ScheduleEntry]] = defaultdict(list)
        for entry in self.schedule:
            slots[(entry.day, entry.period)].append(entry)

        for entries in slots.values():
            if len(entries) < 2:
                continue
            conflicts.extend(self._check_slot(entries))

        return conflicts

    def _check_slot(self, entries: List[ScheduleEntry]) -> List[Conflict]:
        teacher_usage: Dict[str, List[str]] = defaultdict(list)
        room_usage: Dict[str, List[str]] = defaultdict(list)
        class_usage: Dict[str, List[str]] = defaultdict(list)

        for entry in entries:
            for teacher_id in entry.teacherIds or []:
                teacher_usage[teacher_id].append(entry.id)
            if entry.roomId:
                room_usage[entry.roomId].append(entry.id)
            if entry.classGradeId:
                class_usage[entry.classGradeId].append(entry.id)
            if entry.eventActivityId:
                # An event's default teachers are busy even when the entry overrides teacherIds.
                event = self.store.find_by_id("eventActivities", entry.eventActivityId)
                if event is not None:
                    for teacher_id in event.affectedTeacherIds or []:
                        teacher_usage[teacher_id].append(entry.id)

        found: List[Conflict] = []
        for teacher_id, ids in teacher_usage.items():
            teacher = self.store.find_by_id("teachers", teacher_id)
            if len(ids) > 1 and teacher is not None:
                display = " ".join(part for part in (teacher.prefix, teacher.name) if part)
                found.append(Conflict(
                    type="teacher",
                    message=f"Teacher {display} is double-booked.",
                    involved=_unique(ids),
                ))

        for room_id, ids in room_usage.items():
            room = self.store.find_by_id("rooms", room_id)
            if room is None:
                continue
            capacity = room.capacity or 1
            if len(ids) > capacity:
                found.append(Conflict(
                    type="room",
                    message=f"Room {room.name} is over capacity (Max: {capacity}, Scheduled: {len(ids)}).",
                    involved=_unique(ids),
                ))

        for class_id, ids in class_usage.items():
            class_grade = self.store.find_by_id("classGrades", class_id)
            if len(ids) > 1 and class_grade is not None:
                found.append(Conflict(
                    type="class",
                    message=f"Class {class_grade.name} is double-booked.",
                    involved=_unique(ids),
                ))

        return found


def _unique(ids: List[str]) -> List[str]:
    return list(dict.fromkeys(ids))


def detect_conflicts(store: TimetableStore) -> List[Conflict]:
    return ConflictService(store.state.schedule, store).detect_conflicts()
