"""Repository interface definitions

The domain layer defines the persistence collaborator it consumes; the
infrastructure layer implements it.
"""
from abc import ABC, abstractmethod
from typing import List, Optional

from ..entities.classroom import Classroom
from ..entities.curriculum import Curriculum
from ..entities.group import Group
from ..entities.schedule import Lesson, OptimizationHistory, PenaltySettings, Schedule
from ..entities.semester import Semester, User
from ..entities.teaching_load import TeachingLoad
from ..value_objects.time_slot import DayOfWeek, TimeSlot


class ITimetableRepository(ABC):
    """Persistence collaborator of the timetable engine

    Reference data (semesters, users, loads, rooms, slots, groups, curricula,
    penalty settings) is read-only; schedules and lessons are read-write;
    optimization history is append-only. Write failures raise
    ``PersistenceError``.
    """

    # --- reference data -------------------------------------------------

    @abstractmethod
    def get_semester(self, semester_id: int) -> Optional[Semester]:
        pass

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[User]:
        pass

    @abstractmethod
    def find_teaching_loads(self, semester_id: int) -> List[TeachingLoad]:
        """All teaching loads of a semester"""
        pass

    @abstractmethod
    def get_teaching_load(self, teaching_load_id: int) -> Optional[TeachingLoad]:
        pass

    @abstractmethod
    def find_classrooms(self) -> List[Classroom]:
        """All classrooms, largest capacity first"""
        pass

    @abstractmethod
    def get_classroom(self, classroom_id: int) -> Optional[Classroom]:
        pass

    @abstractmethod
    def find_time_slots(self) -> List[TimeSlot]:
        """All time slots ordered by pair number"""
        pass

    @abstractmethod
    def get_time_slot(self, time_slot_id: int) -> Optional[TimeSlot]:
        pass

    @abstractmethod
    def get_group(self, group_id: int) -> Optional[Group]:
        pass

    @abstractmethod
    def find_curricula(self, semester_id: int) -> List[Curriculum]:
        pass

    @abstractmethod
    def get_curriculum(self, curriculum_id: int) -> Optional[Curriculum]:
        pass

    @abstractmethod
    def get_default_penalty_settings(self, semester_id: int) -> Optional[PenaltySettings]:
        """Latest default penalty settings of a semester"""
        pass

    # --- schedules ------------------------------------------------------

    @abstractmethod
    def create_schedule(self, schedule: Schedule) -> Schedule:
        """Persist a new schedule and return it with its id assigned"""
        pass

    @abstractmethod
    def get_schedule(self, schedule_id: int) -> Optional[Schedule]:
        pass

    @abstractmethod
    def update_schedule(self, schedule: Schedule) -> Schedule:
        pass

    # --- lessons --------------------------------------------------------

    @abstractmethod
    def find_lessons(self, schedule_id: int,
                     day_of_week: Optional[DayOfWeek] = None,
                     time_slot_id: Optional[int] = None) -> List[Lesson]:
        """Lessons of a schedule, optionally restricted to one (day, slot)"""
        pass

    @abstractmethod
    def get_lesson(self, lesson_id: int) -> Optional[Lesson]:
        pass

    @abstractmethod
    def create_lesson(self, lesson: Lesson) -> Lesson:
        pass

    @abstractmethod
    def update_lesson(self, lesson: Lesson) -> Lesson:
        pass

    @abstractmethod
    def delete_lesson(self, lesson_id: int) -> bool:
        pass

    # --- history --------------------------------------------------------

    @abstractmethod
    def add_optimization_history(self, entry: OptimizationHistory) -> OptimizationHistory:
        pass

    @abstractmethod
    def find_optimization_history(self, schedule_id: int) -> List[OptimizationHistory]:
        pass
