"""Local search optimization interfaces"""
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ...entities.schedule import Lesson
from ...value_objects.time_slot import DayOfWeek, TimeSlot
from ....shared.utils.concurrency import CancellationToken


@dataclass
class OptimizationResult:
    """Outcome of one optimization run"""
    schedule_id: int
    before: float
    after: float
    iterations: int
    successful: int
    duration: float
    cancelled: bool = False
    conflicting_moves: int = 0
    rejected_moves: int = 0
    history_id: Optional[int] = None

    @property
    def improvement(self) -> float:
        return self.before - self.after

    @property
    def improvement_percentage(self) -> float:
        if self.before <= 0:
            return 0.0
        return self.improvement / self.before * 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            'schedule_id': self.schedule_id,
            'before': self.before,
            'after': self.after,
            'improvement': self.improvement,
            'iterations': self.iterations,
            'successful': self.successful,
            'duration': round(self.duration, 3),
            'cancelled': self.cancelled,
            'conflicting_moves': self.conflicting_moves,
            'rejected_moves': self.rejected_moves,
        }

    def __repr__(self) -> str:
        return (f"OptimizationResult(penalty: {self.before:.2f} -> {self.after:.2f}, "
                f"improvement: {self.improvement_percentage:.1f}%, "
                f"iterations: {self.iterations}, accepted: {self.successful})")


@dataclass(frozen=True)
class Move:
    """Relocation of one lesson to another (day, slot); the room is kept"""
    lesson_id: int
    day_of_week: DayOfWeek
    time_slot_id: int
    previous_day: DayOfWeek
    previous_time_slot_id: int

    def apply(self, lesson: Lesson) -> None:
        lesson.day_of_week = self.day_of_week
        lesson.time_slot_id = self.time_slot_id

    def revert(self, lesson: Lesson) -> None:
        lesson.day_of_week = self.previous_day
        lesson.time_slot_id = self.previous_time_slot_id


class MoveStrategy(ABC):
    """Proposes a neighbouring placement of a lesson"""

    @abstractmethod
    def propose(self, lesson: Lesson, time_slots: List[TimeSlot],
                rng: random.Random) -> Optional[Move]:
        """A move for the lesson, or None when it has nowhere to go"""
        pass


class AcceptanceCriterion(ABC):
    """Decides whether a conflict-free move is kept"""

    name: str = ""

    @abstractmethod
    def accept(self, current: float, candidate: float, iteration: int,
               rng: random.Random) -> bool:
        """
        Args:
            current: total penalty before the move
            candidate: total penalty after the move
            iteration: 0-based iteration index
            rng: random source of the run

        Returns:
            True to keep the move
        """
        pass


class LocalSearchOptimizer(ABC):
    """Improves a persisted schedule in place"""

    @abstractmethod
    def optimize(self, schedule_id: int, max_iterations: int = 100,
                 cancellation_token: Optional[CancellationToken] = None) -> OptimizationResult:
        """Run the local search

        Args:
            schedule_id: schedule to improve
            max_iterations: number of proposed moves
            cancellation_token: checked before every iteration

        Returns:
            OptimizationResult
        """
        pass
