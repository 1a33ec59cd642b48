"""In-memory repository

Mutable records (schedules and lessons) are copied on read and on write,
so callers never hold a reference into the store and the stored state stays
authoritative.
"""
import itertools
import logging
import threading
from dataclasses import replace
from typing import Dict, Iterable, List, Optional

from ...domain.entities.classroom import Classroom
from ...domain.entities.curriculum import Curriculum
from ...domain.entities.group import Group
from ...domain.entities.schedule import Lesson, OptimizationHistory, PenaltySettings, Schedule
from ...domain.entities.semester import Semester, User
from ...domain.entities.teaching_load import TeachingLoad
from ...domain.exceptions import PersistenceError
from ...domain.interfaces.repositories import ITimetableRepository
from ...domain.value_objects.time_slot import DayOfWeek, TimeSlot


class InMemoryTimetableRepository(ITimetableRepository):
    """Dictionary-backed repository used by tests and the CSV adapter"""

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self._lock = threading.RLock()
        self.semesters: Dict[int, Semester] = {}
        self.users: Dict[int, User] = {}
        self.teaching_loads: Dict[int, TeachingLoad] = {}
        self.classrooms: Dict[int, Classroom] = {}
        self.time_slots: Dict[int, TimeSlot] = {}
        self.groups: Dict[int, Group] = {}
        self.curricula: Dict[int, Curriculum] = {}
        self.penalty_settings: Dict[int, PenaltySettings] = {}
        self.schedules: Dict[int, Schedule] = {}
        self.lessons: Dict[int, Lesson] = {}
        self.history: List[OptimizationHistory] = []
        self._schedule_ids = itertools.count(1)
        self._lesson_ids = itertools.count(1)
        self._history_ids = itertools.count(1)

    # --- seeding ----------------------------------------------------------

    def add_semester(self, semester: Semester) -> Semester:
        self.semesters[semester.id] = semester
        return semester

    def add_user(self, user: User) -> User:
        self.users[user.id] = user
        return user

    def add_teaching_load(self, load: TeachingLoad) -> TeachingLoad:
        self.teaching_loads[load.id] = load
        return load

    def add_classroom(self, classroom: Classroom) -> Classroom:
        self.classrooms[classroom.id] = classroom
        return classroom

    def add_time_slot(self, time_slot: TimeSlot) -> TimeSlot:
        self.time_slots[time_slot.id] = time_slot
        return time_slot

    def add_group(self, group: Group) -> Group:
        self.groups[group.id] = group
        return group

    def add_curriculum(self, curriculum: Curriculum) -> Curriculum:
        self.curricula[curriculum.id] = curriculum
        return curriculum

    def add_penalty_settings(self, settings: PenaltySettings) -> PenaltySettings:
        self.penalty_settings[settings.id] = settings
        return settings

    def add_all(self, records: Iterable) -> None:
        """Seed a mixed iterable of reference records"""
        adders = {
            Semester: self.add_semester,
            User: self.add_user,
            TeachingLoad: self.add_teaching_load,
            Classroom: self.add_classroom,
            TimeSlot: self.add_time_slot,
            Group: self.add_group,
            Curriculum: self.add_curriculum,
            PenaltySettings: self.add_penalty_settings,
        }
        for record in records:
            adder = adders.get(type(record))
            if adder is None:
                raise TypeError(f"Unsupported record type: {type(record).__name__}")
            adder(record)

    # --- reference data ---------------------------------------------------

    def get_semester(self, semester_id: int) -> Optional[Semester]:
        return self.semesters.get(semester_id)

    def get_user(self, user_id: int) -> Optional[User]:
        return self.users.get(user_id)

    def find_teaching_loads(self, semester_id: int) -> List[TeachingLoad]:
        return [load for load in self.teaching_loads.values() if load.semester_id == semester_id]

    def get_teaching_load(self, teaching_load_id: int) -> Optional[TeachingLoad]:
        return self.teaching_loads.get(teaching_load_id)

    def find_classrooms(self) -> List[Classroom]:
        return sorted(self.classrooms.values(), key=lambda room: -room.capacity)

    def get_classroom(self, classroom_id: int) -> Optional[Classroom]:
        return self.classrooms.get(classroom_id)

    def find_time_slots(self) -> List[TimeSlot]:
        return sorted(self.time_slots.values(), key=lambda slot: (slot.pair_number, slot.sort_key))

    def get_time_slot(self, time_slot_id: int) -> Optional[TimeSlot]:
        return self.time_slots.get(time_slot_id)

    def get_group(self, group_id: int) -> Optional[Group]:
        return self.groups.get(group_id)

    def find_curricula(self, semester_id: int) -> List[Curriculum]:
        return [c for c in self.curricula.values() if c.semester_id == semester_id]

    def get_curriculum(self, curriculum_id: int) -> Optional[Curriculum]:
        return self.curricula.get(curriculum_id)

    def get_default_penalty_settings(self, semester_id: int) -> Optional[PenaltySettings]:
        candidates = [
            s for s in self.penalty_settings.values()
            if s.semester_id == semester_id and s.is_default
        ]
        if not candidates:
            return None
        return max(candidates, key=lambda s: (s.created_at, s.id))

    # --- schedules --------------------------------------------------------

    def create_schedule(self, schedule: Schedule) -> Schedule:
        with self._lock:
            stored = replace(schedule, id=next(self._schedule_ids))
            self.schedules[stored.id] = stored
            return replace(stored)

    def get_schedule(self, schedule_id: int) -> Optional[Schedule]:
        stored = self.schedules.get(schedule_id)
        return replace(stored) if stored is not None else None

    def update_schedule(self, schedule: Schedule) -> Schedule:
        with self._lock:
            if schedule.id not in self.schedules:
                raise PersistenceError(f"Schedule {schedule.id} does not exist",
                                       entity='schedule', entity_id=schedule.id)
            self.schedules[schedule.id] = replace(schedule)
            return replace(schedule)

    # --- lessons ----------------------------------------------------------

    def find_lessons(self, schedule_id: int,
                     day_of_week: Optional[DayOfWeek] = None,
                     time_slot_id: Optional[int] = None) -> List[Lesson]:
        with self._lock:
            return [
                replace(lesson) for lesson in self.lessons.values()
                if lesson.schedule_id == schedule_id
                and (day_of_week is None or lesson.day_of_week == day_of_week)
                and (time_slot_id is None or lesson.time_slot_id == time_slot_id)
            ]

    def get_lesson(self, lesson_id: int) -> Optional[Lesson]:
        stored = self.lessons.get(lesson_id)
        return replace(stored) if stored is not None else None

    def create_lesson(self, lesson: Lesson) -> Lesson:
        with self._lock:
            if lesson.schedule_id not in self.schedules:
                raise PersistenceError(f"Schedule {lesson.schedule_id} does not exist",
                                       entity='lesson', entity_id=lesson.id)
            stored = replace(lesson, id=next(self._lesson_ids))
            self.lessons[stored.id] = stored
            return replace(stored)

    def update_lesson(self, lesson: Lesson) -> Lesson:
        with self._lock:
            if lesson.id not in self.lessons:
                raise PersistenceError(f"Lesson {lesson.id} does not exist",
                                       entity='lesson', entity_id=lesson.id)
            self.lessons[lesson.id] = replace(lesson)
            return replace(lesson)

    def delete_lesson(self, lesson_id: int) -> bool:
        with self._lock:
            return self.lessons.pop(lesson_id, None) is not None

    # --- history ----------------------------------------------------------

    def add_optimization_history(self, entry: OptimizationHistory) -> OptimizationHistory:
        with self._lock:
            stored = replace(entry, id=next(self._history_ids))
            self.history.append(stored)
            return replace(stored)

    def find_optimization_history(self, schedule_id: int) -> List[OptimizationHistory]:
        return [replace(entry) for entry in self.history if entry.schedule_id == schedule_id]
