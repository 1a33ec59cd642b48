"""Conflict records produced by the conflict detector"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..entities.schedule import Lesson


class ConflictType(Enum):
    """Hard rule broken by a lesson placement"""
    TEACHER_CONFLICT = "TEACHER_CONFLICT"
    ROOM_CONFLICT = "ROOM_CONFLICT"
    GROUP_CONFLICT = "GROUP_CONFLICT"
    CAPACITY_INSUFFICIENT = "CAPACITY_INSUFFICIENT"
    WRONG_ROOM_TYPE = "WRONG_ROOM_TYPE"
    SHIFT_VIOLATION = "SHIFT_VIOLATION"


class Severity(Enum):
    CRITICAL = "CRITICAL"
    WARNING = "WARNING"


@dataclass(frozen=True)
class Conflict:
    """A single hard-rule violation of one lesson"""

    type: ConflictType
    message: str
    severity: Severity = Severity.CRITICAL
    conflicting_lesson_id: Optional[int] = None
    details: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"[{self.severity.value}] {self.type.value}: {self.message}"

    @property
    def is_critical(self) -> bool:
        return self.severity == Severity.CRITICAL

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type.value,
            'severity': self.severity.value,
            'message': self.message,
            'conflicting_lesson_id': self.conflicting_lesson_id,
            'details': dict(self.details),
        }


@dataclass
class ConflictReport:
    """All conflicts of one persisted lesson"""

    lesson: 'Lesson'
    conflicts: List[Conflict]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'lesson': self.lesson.to_dict(),
            'conflicts': [c.to_dict() for c in self.conflicts],
        }
