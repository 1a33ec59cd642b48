"""Curriculum entities"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from ..value_objects.lesson_type import LessonType


class AssessmentType(Enum):
    EXAM = "EXAM"
    CREDIT = "CREDIT"
    COURSEWORK = "COURSEWORK"


@dataclass(frozen=True)
class Discipline:
    id: int
    name: str
    code: Optional[str] = None

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Curriculum:
    """Required hours of one discipline in a program's semester"""

    id: int
    semester_id: int
    discipline: Discipline
    program_id: Optional[int] = None
    hours_lecture: float = 0.0
    hours_practical: float = 0.0
    hours_lab: float = 0.0
    assessment_type: AssessmentType = AssessmentType.EXAM

    def hours_by_type(self) -> Dict[LessonType, float]:
        return {
            LessonType.LECTURE: self.hours_lecture,
            LessonType.PRACTICE: self.hours_practical,
            LessonType.LAB: self.hours_lab,
        }
