"""Resolution of lesson references into domain objects"""
import logging
from dataclasses import dataclass
from typing import Dict, Optional

from ..entities.classroom import Classroom
from ..entities.group import Group
from ..entities.schedule import Lesson
from ..entities.teaching_load import TeachingLoad
from ..interfaces.repositories import ITimetableRepository
from ..value_objects.time_slot import TimeSlot


@dataclass(frozen=True)
class ResolvedLesson:
    """A lesson together with the records it references"""

    lesson: Lesson
    teaching_load: Optional[TeachingLoad]
    group: Optional[Group]
    classroom: Optional[Classroom]
    time_slot: Optional[TimeSlot]

    @property
    def teacher_id(self) -> Optional[int]:
        return self.teaching_load.teacher_id if self.teaching_load else None

    @property
    def group_id(self) -> Optional[int]:
        return self.group.id if self.group else None


class LessonResolver:
    """Looks up and caches the reference data lessons point at

    Only immutable reference data is cached; lessons and schedules are
    always read from the repository.
    """

    def __init__(self, repository: ITimetableRepository):
        self.repository = repository
        self.logger = logging.getLogger(__name__)
        self._teaching_loads: Dict[int, Optional[TeachingLoad]] = {}
        self._groups: Dict[int, Optional[Group]] = {}
        self._classrooms: Dict[int, Optional[Classroom]] = {}
        self._time_slots: Dict[int, Optional[TimeSlot]] = {}
        self._reference_years: Dict[int, Optional[int]] = {}

    def teaching_load(self, teaching_load_id: int) -> Optional[TeachingLoad]:
        if teaching_load_id not in self._teaching_loads:
            self._teaching_loads[teaching_load_id] = self.repository.get_teaching_load(teaching_load_id)
        return self._teaching_loads[teaching_load_id]

    def group(self, group_id: int) -> Optional[Group]:
        if group_id not in self._groups:
            self._groups[group_id] = self.repository.get_group(group_id)
        return self._groups[group_id]

    def classroom(self, classroom_id: int) -> Optional[Classroom]:
        if classroom_id not in self._classrooms:
            self._classrooms[classroom_id] = self.repository.get_classroom(classroom_id)
        return self._classrooms[classroom_id]

    def time_slot(self, time_slot_id: int) -> Optional[TimeSlot]:
        if time_slot_id not in self._time_slots:
            self._time_slots[time_slot_id] = self.repository.get_time_slot(time_slot_id)
        return self._time_slots[time_slot_id]

    def reference_year(self, schedule_id: int) -> Optional[int]:
        """Start year of the academic year the schedule belongs to"""
        if schedule_id not in self._reference_years:
            year = None
            schedule = self.repository.get_schedule(schedule_id)
            if schedule is not None:
                semester = self.repository.get_semester(schedule.semester_id)
                if semester is not None:
                    year = semester.start_year
            if year is None:
                self.logger.warning(f"Cannot determine academic year of schedule {schedule_id}; "
                                    "shift rules are not applied")
            self._reference_years[schedule_id] = year
        return self._reference_years[schedule_id]

    def resolve(self, lesson: Lesson) -> ResolvedLesson:
        teaching_load = self.teaching_load(lesson.teaching_load_id)
        group = self.group(teaching_load.group_id) if teaching_load else None
        return ResolvedLesson(
            lesson=lesson,
            teaching_load=teaching_load,
            group=group,
            classroom=self.classroom(lesson.classroom_id),
            time_slot=self.time_slot(lesson.time_slot_id),
        )


def groups_overlap(first: ResolvedLesson, second: ResolvedLesson) -> bool:
    """Whether two lessons need the same students at once

    Same group and either the same subgroup, or one of them is a
    whole-group session (subgroup 0).
    """
    if first.group_id is None or first.group_id != second.group_id:
        return False
    first_sub = first.lesson.subgroup
    second_sub = second.lesson.subgroup
    return first_sub == second_sub or first_sub == 0 or second_sub == 0
