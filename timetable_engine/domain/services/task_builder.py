"""Derivation of placement tasks from teaching loads"""
import math
from typing import Iterable, List

from ..entities.curriculum import Discipline
from ..entities.group import Group
from ..entities.task import PlacementTask
from ..entities.teaching_load import TeachingLoad
from ..interfaces.repositories import ITimetableRepository
from ..value_objects.lesson_type import LessonType
from ...shared.mixins.logging_mixin import LoggingMixin


DEFAULT_HOURS_PER_SESSION = 1.5

LECTURE_PRIORITY_BONUS = 100
LAB_PRIORITY_BONUS = 50
DOUBLE_LECTURE_HOURS = 3


class TaskBuilder(LoggingMixin):
    """Turns teaching loads into the queue of sessions to place"""

    def __init__(self, repository: ITimetableRepository,
                 hours_per_session: float = DEFAULT_HOURS_PER_SESSION):
        if hours_per_session <= 0:
            raise ValueError(f"hours_per_session must be positive: {hours_per_session}")
        self.repository = repository
        self.hours_per_session = hours_per_session

    def create_tasks(self, teaching_loads: Iterable[TeachingLoad]) -> List[PlacementTask]:
        """One task per session to place

        Lecture sessions are whole-group; practical and lab hours are split
        evenly across the group's subgroups. Loads whose group or curriculum
        cannot be found are skipped with a warning.

        Args:
            teaching_loads: loads of the semester

        Returns:
            tasks in load order
        """
        tasks: List[PlacementTask] = []

        for load in teaching_loads:
            group = self.repository.get_group(load.group_id)
            curriculum = self.repository.get_curriculum(load.curriculum_id)
            if group is None or curriculum is None:
                self.logger.warning(
                    f"Teaching load {load.id} references a missing "
                    f"{'group' if group is None else 'curriculum'}; skipped"
                )
                continue

            tasks.extend(self._lecture_tasks(load, group, curriculum.discipline))
            tasks.extend(self._subgroup_tasks(load, group, curriculum.discipline,
                                              LessonType.PRACTICE, load.hours_practical))
            tasks.extend(self._subgroup_tasks(load, group, curriculum.discipline,
                                              LessonType.LAB, load.hours_lab))

        self.logger.debug(f"Created {len(tasks)} tasks")
        return tasks

    def prioritize_tasks(self, tasks: Iterable[PlacementTask]) -> List[PlacementTask]:
        """Tasks sorted by descending priority (stable)"""
        return sorted(tasks, key=lambda task: task.priority, reverse=True)

    @staticmethod
    def calculate_priority(load: TeachingLoad, lesson_type: LessonType) -> float:
        """Lectures first, then labs; larger loads first within a kind"""
        priority = 0.0
        if lesson_type == LessonType.LECTURE:
            priority += LECTURE_PRIORITY_BONUS
        elif lesson_type == LessonType.LAB:
            priority += LAB_PRIORITY_BONUS
        return priority + load.total_hours

    def sessions_for(self, hours: float, subgroups: int = 1) -> int:
        if hours <= 0:
            return 0
        return math.ceil(hours / self.hours_per_session / subgroups)

    def _lecture_tasks(self, load: TeachingLoad, group: Group,
                       discipline: Discipline) -> List[PlacementTask]:
        count = self.sessions_for(load.hours_lecture)
        task = PlacementTask(
            lesson_type=LessonType.LECTURE,
            teaching_load=load,
            teacher=load.teacher,
            discipline=discipline,
            group=group,
            subgroup_number=0,
            is_double_lesson=load.hours_lecture >= DOUBLE_LECTURE_HOURS,
            priority=self.calculate_priority(load, LessonType.LECTURE),
        )
        return [task] * count

    def _subgroup_tasks(self, load: TeachingLoad, group: Group, discipline: Discipline,
                        lesson_type: LessonType, hours: float) -> List[PlacementTask]:
        if hours <= 0:
            return []
        subgroups = group.subgroup_count(lesson_type)
        per_subgroup = self.sessions_for(hours, subgroups)
        priority = self.calculate_priority(load, lesson_type)

        tasks = []
        for number in range(1, subgroups + 1):
            task = PlacementTask(
                lesson_type=lesson_type,
                teaching_load=load,
                teacher=load.teacher,
                discipline=discipline,
                group=group,
                subgroup_number=number,
                is_double_lesson=lesson_type == LessonType.LAB,
                priority=priority,
            )
            tasks.extend([task] * per_subgroup)
        return tasks
