"""Schedule, lesson and optimization history entities"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from ..value_objects.lesson_type import LessonType
from ..value_objects.time_slot import DayOfWeek


class GeneratedBy(Enum):
    ALGORITHM = "ALGORITHM"
    MANUAL = "MANUAL"


class OptimizationAlgorithm(Enum):
    GREEDY_BACKTRACKING = "GREEDY_BACKTRACKING"
    LOCAL_SEARCH = "LOCAL_SEARCH"


class OptimizationStatus(Enum):
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


@dataclass
class Schedule:
    """Named container of lessons for one semester"""

    semester_id: int
    name: str
    created_by: int
    semester_number: Optional[int] = None
    academic_year: Optional[str] = None
    is_active: bool = False
    is_published: bool = False
    generated_by: GeneratedBy = GeneratedBy.ALGORITHM
    optimization_score: Optional[float] = None
    id: Optional[int] = None
    created_at: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"{self.name} (#{self.id})"


@dataclass
class Lesson:
    """One placed session: (day, time slot, classroom) for a teaching load"""

    schedule_id: int
    teaching_load_id: int
    lesson_type: LessonType
    day_of_week: DayOfWeek
    time_slot_id: int
    classroom_id: int
    subgroup_number: Optional[int] = None
    is_double_lesson: bool = False
    id: Optional[int] = None

    @property
    def subgroup(self) -> int:
        """Subgroup number with 0 meaning the whole group"""
        return self.subgroup_number or 0

    @property
    def position(self) -> tuple:
        return (self.day_of_week, self.time_slot_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'schedule_id': self.schedule_id,
            'teaching_load_id': self.teaching_load_id,
            'lesson_type': self.lesson_type.value,
            'day_of_week': self.day_of_week.value,
            'time_slot_id': self.time_slot_id,
            'classroom_id': self.classroom_id,
            'subgroup_number': self.subgroup_number,
            'is_double_lesson': self.is_double_lesson,
        }


@dataclass
class OptimizationHistory:
    """Append-only audit record of a generation or optimization run"""

    schedule_id: int
    algorithm: OptimizationAlgorithm
    penalty_before: float
    penalty_after: float
    iterations_count: int
    duration: float
    improvements: Dict[str, Any] = field(default_factory=dict)
    status: OptimizationStatus = OptimizationStatus.COMPLETED
    penalty_settings_id: Optional[int] = None
    id: Optional[int] = None
    created_at: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class PenaltySettings:
    """Named weight table of a semester

    ``penalties`` is a structured mapping of weight keys to numbers.
    """

    id: int
    semester_id: int
    name: str
    penalties: Dict[str, Any] = field(default_factory=dict, hash=False)
    is_default: bool = False
    created_at: datetime = field(default_factory=datetime.now)
