"""Placement task"""
from dataclasses import dataclass

from .curriculum import Discipline
from .group import Group
from .teaching_load import Teacher, TeachingLoad
from ..value_objects.lesson_type import LessonType


@dataclass(frozen=True)
class PlacementTask:
    """One session of a teaching load waiting to be placed"""

    lesson_type: LessonType
    teaching_load: TeachingLoad
    teacher: Teacher
    discipline: Discipline
    group: Group
    subgroup_number: int = 0
    is_double_lesson: bool = False
    priority: float = 0.0

    def __str__(self) -> str:
        subgroup = f"/{self.subgroup_number}" if self.subgroup_number else ""
        return f"{self.lesson_type.value} {self.discipline.name} for {self.group.code}{subgroup}"

    @property
    def student_count(self) -> int:
        return self.group.student_count
