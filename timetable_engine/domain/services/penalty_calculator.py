"""Penalty calculator

Objective function of the engine: hard violations are weighted heavily so
that a feasible schedule always beats an infeasible one, soft violations
measure quality.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..constraints.base import Constraint, PenaltyViolation, ScheduleSnapshot
from ..constraints.hard_constraints import default_hard_constraints
from ..constraints.soft_constraints import default_soft_constraints
from ..exceptions import ConfigurationError
from ..interfaces.repositories import ITimetableRepository
from ..value_objects.penalty_weights import PenaltyWeights
from ..value_objects.time_slot import build_slot_ordinals
from ...shared.mixins.logging_mixin import LoggingMixin
from .lesson_resolver import LessonResolver


logger = logging.getLogger(__name__)


def load_penalty_settings(repository: ITimetableRepository, semester_id: int) -> PenaltyWeights:
    """Weights of the latest default penalty settings of a semester

    Never raises: a missing record, a failing lookup or malformed content
    fall back to the built-in defaults with a warning.

    Args:
        repository: persistence collaborator
        semester_id: semester whose settings are wanted

    Returns:
        PenaltyWeights
    """
    try:
        settings = repository.get_default_penalty_settings(semester_id)
    except Exception as e:
        logger.warning(f"Failed to load penalty settings of semester {semester_id}: {e}; "
                       "using defaults")
        return PenaltyWeights()

    if settings is None:
        logger.info(f"No default penalty settings for semester {semester_id}; using defaults")
        return PenaltyWeights()

    try:
        weights = PenaltyWeights.from_mapping(settings.penalties)
    except ConfigurationError as e:
        logger.warning(f"Malformed penalty settings '{settings.name}' (#{settings.id}): "
                       f"{e.message}; using defaults")
        return PenaltyWeights()

    logger.debug(f"Loaded penalty settings '{settings.name}' (#{settings.id})")
    return weights


@dataclass
class PenaltyReport:
    """Total penalty of a schedule with its breakdown"""

    schedule_id: int
    total_penalty: float
    breakdown: Dict[str, float]
    violations: Dict[str, List[PenaltyViolation]]
    lesson_count: int = 0
    by_constraint: Dict[str, float] = field(default_factory=dict)

    @property
    def hard_penalty(self) -> float:
        return self.breakdown['hard']

    @property
    def soft_penalty(self) -> float:
        return self.breakdown['soft']

    @property
    def is_feasible(self) -> bool:
        return not self.violations['hard']

    def to_dict(self) -> Dict[str, Any]:
        return {
            'schedule_id': self.schedule_id,
            'total_penalty': self.total_penalty,
            'breakdown': dict(self.breakdown),
            'by_constraint': dict(self.by_constraint),
            'lesson_count': self.lesson_count,
            'violations': {
                kind: [v.to_dict() for v in items]
                for kind, items in self.violations.items()
            },
        }


class PenaltyCalculator(LoggingMixin):
    """Scores a schedule with a fixed set of weights

    Each instance holds its own weights, so calculators for different
    semesters never interfere.
    """

    def __init__(self, repository: ITimetableRepository,
                 weights: Optional[PenaltyWeights] = None,
                 resolver: Optional[LessonResolver] = None,
                 constraints: Optional[List[Constraint]] = None):
        self.repository = repository
        self.weights = weights or PenaltyWeights()
        self.resolver = resolver or LessonResolver(repository)
        self.constraints = constraints or (default_hard_constraints() + default_soft_constraints())
        self._slot_ordinals: Optional[Dict[int, int]] = None

    @classmethod
    def for_semester(cls, repository: ITimetableRepository, semester_id: int,
                     resolver: Optional[LessonResolver] = None) -> 'PenaltyCalculator':
        """Calculator using the semester's default penalty settings"""
        return cls(repository, load_penalty_settings(repository, semester_id), resolver)

    @property
    def slot_ordinals(self) -> Dict[int, int]:
        if self._slot_ordinals is None:
            self._slot_ordinals = build_slot_ordinals(self.repository.find_time_slots())
        return self._slot_ordinals

    def snapshot(self, schedule_id: int) -> ScheduleSnapshot:
        lessons = self.repository.find_lessons(schedule_id)
        return ScheduleSnapshot(
            schedule_id=schedule_id,
            lessons=[self.resolver.resolve(lesson) for lesson in lessons],
            slot_ordinals=self.slot_ordinals,
            reference_year=self.resolver.reference_year(schedule_id),
        )

    def calculate_total_penalty(self, schedule_id: int) -> PenaltyReport:
        """Score every persisted lesson of a schedule

        Args:
            schedule_id: schedule to score

        Returns:
            PenaltyReport with hard/soft breakdown and violation lists
        """
        snapshot = self.snapshot(schedule_id)
        violations: Dict[str, List[PenaltyViolation]] = {'hard': [], 'soft': []}
        by_constraint: Dict[str, float] = {}

        for constraint in self.constraints:
            result = constraint.evaluate(snapshot, self.weights)
            kind = 'hard' if constraint.is_hard_constraint() else 'soft'
            violations[kind].extend(result.violations)
            by_constraint[constraint.name] = result.penalty

        hard = sum(v.penalty for v in violations['hard'])
        soft = sum(v.penalty for v in violations['soft'])

        self.logger.debug(
            f"Schedule {schedule_id}: {len(snapshot.lessons)} lessons, "
            f"hard={hard}, soft={soft}"
        )

        return PenaltyReport(
            schedule_id=schedule_id,
            total_penalty=hard + soft,
            breakdown={'hard': hard, 'soft': soft},
            violations=violations,
            lesson_count=len(snapshot.lessons),
            by_constraint=by_constraint,
        )
