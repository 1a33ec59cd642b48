"""Request and result models of the engine operations"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ...domain.entities.task import PlacementTask
from ...domain.services.interfaces.local_search_optimizer import OptimizationResult
from ...domain.services.penalty_calculator import PenaltyReport
from ...domain.value_objects.lesson_type import LessonType
from ...domain.value_objects.time_slot import DayOfWeek


@dataclass
class GenerationOptions:
    """Schedule generation request"""
    max_iterations: int = 10000
    # penalty at or below which no optimization runs (None: always optimize)
    target_penalty: Optional[float] = None
    save_progress: bool = True
    # local search iterations run right after construction
    optimization_iterations: int = 0

    def __post_init__(self):
        if self.max_iterations < 0:
            raise ValueError(f"max_iterations cannot be negative: {self.max_iterations}")
        if self.optimization_iterations < 0:
            raise ValueError(f"optimization_iterations cannot be negative: {self.optimization_iterations}")


@dataclass
class UnplacedTask:
    """A task the construction phase could not place"""
    task: PlacementTask
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'teaching_load_id': self.task.teaching_load.id,
            'lesson_type': self.task.lesson_type.value,
            'discipline': self.task.discipline.name,
            'group': self.task.group.code,
            'subgroup_number': self.task.subgroup_number,
            'reason': self.reason,
        }


@dataclass
class GenerationResult:
    """Schedule generation result"""
    schedule_id: int
    placed_count: int
    total_tasks: int
    success_rate: float
    evaluation: PenaltyReport
    unplaced_tasks: List[UnplacedTask] = field(default_factory=list)
    optimization: Optional[OptimizationResult] = None
    target_reached: bool = False
    duration: float = 0.0
    history_id: Optional[int] = None
    # seconds per phase: generate, place_loop and optimize when it ran
    timings: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'schedule_id': self.schedule_id,
            'placed_count': self.placed_count,
            'total_tasks': self.total_tasks,
            'success_rate': self.success_rate,
            'total_penalty': self.evaluation.total_penalty,
            'breakdown': dict(self.evaluation.breakdown),
            'unplaced_tasks': [unplaced.to_dict() for unplaced in self.unplaced_tasks],
            'optimization': self.optimization.to_dict() if self.optimization else None,
            'target_reached': self.target_reached,
            'duration': round(self.duration, 3),
            'timings': {name: round(seconds, 3) for name, seconds in self.timings.items()},
        }


@dataclass
class LessonRequest:
    """Manual lesson creation or relocation"""
    teaching_load_id: Optional[int] = None
    lesson_type: Optional[LessonType] = None
    day_of_week: Optional[DayOfWeek] = None
    time_slot_id: Optional[int] = None
    classroom_id: Optional[int] = None
    subgroup_number: Optional[int] = None
    is_double_lesson: bool = False
