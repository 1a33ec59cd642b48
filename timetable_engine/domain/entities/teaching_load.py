"""Teaching load entities"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict

from ..value_objects.lesson_type import LessonType


class ApprovalStatus(Enum):
    DRAFT = "DRAFT"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


@dataclass(frozen=True)
class Teacher:
    id: int
    first_name: str
    last_name: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __str__(self) -> str:
        return self.full_name


@dataclass(frozen=True)
class TeachingLoad:
    """Hours a teacher delivers to a group for one curriculum entry

    The unit of demand placed by the generator; never created or mutated by
    the engine.
    """

    id: int
    semester_id: int
    curriculum_id: int
    teacher: Teacher
    group_id: int
    hours_lecture: float = 0.0
    hours_practical: float = 0.0
    hours_lab: float = 0.0
    status: ApprovalStatus = ApprovalStatus.APPROVED

    @property
    def teacher_id(self) -> int:
        return self.teacher.id

    @property
    def total_hours(self) -> float:
        return self.hours_lecture + self.hours_practical + self.hours_lab

    def hours_by_type(self) -> Dict[LessonType, float]:
        return {
            LessonType.LECTURE: self.hours_lecture,
            LessonType.PRACTICE: self.hours_practical,
            LessonType.LAB: self.hours_lab,
        }
