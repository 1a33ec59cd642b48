"""Base classes of the penalty constraints"""
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Hashable, List, Optional

from ..services.lesson_resolver import ResolvedLesson
from ..value_objects.penalty_weights import PenaltyWeights


class ConstraintType(Enum):
    """Constraint kind"""
    HARD = "HARD"    # infeasible when broken
    SOFT = "SOFT"    # degrades quality only


@dataclass(frozen=True)
class PenaltyViolation:
    """A scored violation found while evaluating a schedule"""

    type: str
    penalty: float
    details: str
    lesson_id: Optional[int] = None
    context: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type,
            'penalty': self.penalty,
            'lesson_id': self.lesson_id,
            'details': self.details,
            **({'context': dict(self.context)} if self.context else {}),
        }


@dataclass
class ScheduleSnapshot:
    """Point-in-time view of a schedule's lessons with resolved references"""

    schedule_id: int
    lessons: List[ResolvedLesson]
    slot_ordinals: Dict[int, int]
    reference_year: Optional[int] = None

    def ordinal(self, resolved: ResolvedLesson) -> int:
        return self.slot_ordinals.get(resolved.lesson.time_slot_id, resolved.lesson.time_slot_id)

    def group_by(self, key: Callable[[ResolvedLesson], Optional[Hashable]]) -> Dict[Hashable, List[ResolvedLesson]]:
        """Bucket lessons by key; lessons whose key is None are skipped"""
        buckets: Dict[Hashable, List[ResolvedLesson]] = defaultdict(list)
        for resolved in self.lessons:
            bucket_key = key(resolved)
            if bucket_key is not None:
                buckets[bucket_key].append(resolved)
        return buckets

    def sorted_by_ordinal(self, lessons: List[ResolvedLesson]) -> List[ResolvedLesson]:
        return sorted(lessons, key=lambda r: (self.ordinal(r), r.lesson.id or 0))


@dataclass
class ConstraintResult:
    """Result of evaluating one constraint"""

    constraint_name: str
    violations: List[PenaltyViolation]

    @property
    def penalty(self) -> float:
        return sum(v.penalty for v in self.violations)

    @property
    def is_valid(self) -> bool:
        return len(self.violations) == 0

    def __bool__(self) -> bool:
        return self.is_valid


class Constraint(ABC):
    """Abstract penalty constraint"""

    def __init__(self, constraint_type: ConstraintType, name: str, description: str = ""):
        self.type = constraint_type
        self.name = name
        self.description = description

    @abstractmethod
    def evaluate(self, snapshot: ScheduleSnapshot, weights: PenaltyWeights) -> ConstraintResult:
        """Score the schedule snapshot"""
        pass

    def is_hard_constraint(self) -> bool:
        return self.type == ConstraintType.HARD

    def is_soft_constraint(self) -> bool:
        return self.type == ConstraintType.SOFT

    def __str__(self) -> str:
        return f"{self.name} ({self.type.value})"


class HardConstraint(Constraint):
    def __init__(self, name: str, description: str = ""):
        super().__init__(ConstraintType.HARD, name, description)


class SoftConstraint(Constraint):
    def __init__(self, name: str, description: str = ""):
        super().__init__(ConstraintType.SOFT, name, description)
