"""Local search by random lesson relocation"""
import logging
import math
import random
import time
from typing import Dict, List, Optional, Tuple

from ..interfaces.local_search_optimizer import (
    AcceptanceCriterion,
    LocalSearchOptimizer,
    Move,
    MoveStrategy,
    OptimizationResult,
)
from ..conflict_detector import ConflictDetector
from ..penalty_calculator import PenaltyCalculator
from ...entities.schedule import Lesson, OptimizationAlgorithm, OptimizationHistory, OptimizationStatus
from ...exceptions import OptimizationError, PersistenceError, ScheduleNotFoundError
from ...interfaces.repositories import ITimetableRepository
from ...value_objects.time_slot import DayOfWeek, TimeSlot
from ....shared.utils.concurrency import CancellationToken


class RandomSlotMoveStrategy(MoveStrategy):
    """Moves a lesson to a uniformly chosen other (day, slot)"""

    def __init__(self, days: Optional[List[DayOfWeek]] = None):
        self.days = days or DayOfWeek.teaching_days()

    def propose(self, lesson: Lesson, time_slots: List[TimeSlot],
                rng: random.Random) -> Optional[Move]:
        positions = [
            (day, slot.id)
            for day in self.days
            for slot in time_slots
            if (day, slot.id) != lesson.position
        ]
        if not positions:
            return None
        day, slot_id = rng.choice(positions)
        return Move(
            lesson_id=lesson.id,
            day_of_week=day,
            time_slot_id=slot_id,
            previous_day=lesson.day_of_week,
            previous_time_slot_id=lesson.time_slot_id,
        )


class HillClimbingAcceptance(AcceptanceCriterion):
    """Keeps strictly improving moves only"""

    name = "hill_climbing"

    def accept(self, current: float, candidate: float, iteration: int,
               rng: random.Random) -> bool:
        return candidate < current


class SimulatedAnnealingAcceptance(AcceptanceCriterion):
    """Accepts worse moves with probability exp(-delta / T)

    The temperature decays geometrically per iteration.
    """

    name = "simulated_annealing"

    def __init__(self, initial_temperature: float = 100.0, cooling_rate: float = 0.95,
                 min_temperature: float = 0.01):
        if initial_temperature <= 0 or not 0 < cooling_rate < 1:
            raise ValueError("initial_temperature must be positive and cooling_rate in (0, 1)")
        self.initial_temperature = initial_temperature
        self.cooling_rate = cooling_rate
        self.min_temperature = min_temperature

    def temperature(self, iteration: int) -> float:
        return self.initial_temperature * (self.cooling_rate ** iteration)

    def accept(self, current: float, candidate: float, iteration: int,
               rng: random.Random) -> bool:
        if candidate < current:
            return True
        temperature = self.temperature(iteration)
        if temperature <= self.min_temperature:
            return False
        delta = candidate - current
        return rng.random() < math.exp(-delta / temperature)


class RandomMoveOptimizer(LocalSearchOptimizer):
    """Relocates random lessons and keeps the moves the criterion accepts

    Every move is persisted before it is checked, so storage always holds
    the current placement; conflicting or rejected moves are written back.
    The best placement seen is restored at the end, so the final penalty
    never exceeds the initial one.
    """

    def __init__(self, repository: ITimetableRepository, detector: ConflictDetector,
                 calculator: PenaltyCalculator,
                 move_strategy: Optional[MoveStrategy] = None,
                 acceptance: Optional[AcceptanceCriterion] = None,
                 rng: Optional[random.Random] = None):
        self.repository = repository
        self.detector = detector
        self.calculator = calculator
        self.move_strategy = move_strategy or RandomSlotMoveStrategy()
        self.acceptance = acceptance or HillClimbingAcceptance()
        self.rng = rng or random.Random()
        self.logger = logging.getLogger(__name__)

    def optimize(self, schedule_id: int, max_iterations: int = 100,
                 cancellation_token: Optional[CancellationToken] = None) -> OptimizationResult:
        if self.repository.get_schedule(schedule_id) is None:
            raise ScheduleNotFoundError(schedule_id)

        self.logger.info(f"Optimizing schedule {schedule_id} "
                         f"({max_iterations} iterations, {self.acceptance.name})")
        start = time.perf_counter()

        time_slots = self.repository.find_time_slots()
        before = self.calculator.calculate_total_penalty(schedule_id).total_penalty
        current = before
        best = before
        best_positions = self._positions(schedule_id)

        stats = {'accepted': 0, 'conflicts': 0, 'rejected': 0}
        iterations = 0
        cancelled = False

        for iteration in range(max_iterations):
            if cancellation_token is not None and cancellation_token.is_cancelled:
                self.logger.info(f"Optimization of schedule {schedule_id} cancelled "
                                 f"after {iterations} iterations")
                cancelled = True
                break

            lessons = self.repository.find_lessons(schedule_id)
            if not lessons:
                break
            iterations += 1

            lesson = self.rng.choice(lessons)
            move = self.move_strategy.propose(lesson, time_slots, self.rng)
            if move is None:
                continue

            move.apply(lesson)
            self._persist(lesson, schedule_id, iteration)

            if self.detector.detect_conflicts(lesson, schedule_id):
                stats['conflicts'] += 1
                move.revert(lesson)
                self._persist(lesson, schedule_id, iteration)
                continue

            candidate = self.calculator.calculate_total_penalty(schedule_id).total_penalty
            if self.acceptance.accept(current, candidate, iteration, self.rng):
                stats['accepted'] += 1
                current = candidate
                if current < best:
                    best = current
                    best_positions = self._positions(schedule_id)
                    self.logger.debug(f"Iteration {iteration}: penalty {best}")
            else:
                stats['rejected'] += 1
                move.revert(lesson)
                self._persist(lesson, schedule_id, iteration)

        if current > best:
            self._restore(schedule_id, best_positions)

        after = self.calculator.calculate_total_penalty(schedule_id).total_penalty
        duration = time.perf_counter() - start

        result = OptimizationResult(
            schedule_id=schedule_id,
            before=before,
            after=after,
            iterations=iterations,
            successful=stats['accepted'],
            duration=duration,
            cancelled=cancelled,
            conflicting_moves=stats['conflicts'],
            rejected_moves=stats['rejected'],
        )
        result.history_id = self._record_history(result)

        self.logger.info(f"Optimization of schedule {schedule_id} finished: {result!r}")
        return result

    def _persist(self, lesson: Lesson, schedule_id: int, iteration: int) -> None:
        try:
            self.repository.update_lesson(lesson)
        except PersistenceError as e:
            stored = self.repository.get_lesson(lesson.id)
            if stored is not None:
                lesson.day_of_week = stored.day_of_week
                lesson.time_slot_id = stored.time_slot_id
            self.logger.error(f"Failed to persist lesson {lesson.id} during optimization: {e.message}")
            raise OptimizationError(
                f"Optimization of schedule {schedule_id} aborted: {e.message}",
                schedule_id=schedule_id,
                iteration=iteration,
                details={'lesson_id': lesson.id},
            ) from e

    def _positions(self, schedule_id: int) -> Dict[int, Tuple[DayOfWeek, int]]:
        return {lesson.id: lesson.position for lesson in self.repository.find_lessons(schedule_id)}

    def _restore(self, schedule_id: int, positions: Dict[int, Tuple[DayOfWeek, int]]) -> None:
        """Write back the best placement seen"""
        for lesson in self.repository.find_lessons(schedule_id):
            target = positions.get(lesson.id)
            if target is None or lesson.position == target:
                continue
            lesson.day_of_week, lesson.time_slot_id = target
            self._persist(lesson, schedule_id, -1)

    def _record_history(self, result: OptimizationResult) -> Optional[int]:
        entry = OptimizationHistory(
            schedule_id=result.schedule_id,
            algorithm=OptimizationAlgorithm.LOCAL_SEARCH,
            penalty_before=result.before,
            penalty_after=result.after,
            iterations_count=result.iterations,
            duration=result.duration,
            improvements={
                'improved': result.successful,
                'reduction': result.improvement,
                'conflicting_moves': result.conflicting_moves,
                'rejected_moves': result.rejected_moves,
                'acceptance': self.acceptance.name,
            },
            status=OptimizationStatus.CANCELLED if result.cancelled else OptimizationStatus.COMPLETED,
        )
        return self.repository.add_optimization_history(entry).id
