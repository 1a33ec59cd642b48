"""Greedy lesson placement with per-candidate rejection"""
import logging
from dataclasses import dataclass
from typing import List, Optional

from ..interfaces.lesson_placement_service import LessonPlacementService, PlacementContext
from ..conflict_detector import ConflictDetector
from ...entities.classroom import Classroom
from ...entities.schedule import Lesson
from ...entities.task import PlacementTask
from ...interfaces.repositories import ITimetableRepository
from ...value_objects.lesson_type import allowed_room_types
from ...value_objects.penalty_weights import PenaltyWeights
from ...value_objects.time_slot import TimeSlot


@dataclass
class PlacementAttempt:
    """A conflict-free candidate with its estimated cost"""
    lesson: Lesson
    penalty: float


class GreedyLessonPlacementService(LessonPlacementService):
    """Tries every (day, slot, room) and keeps the cheapest feasible one

    Candidates are enumerated day by day, slot by slot, room by room; the
    first attempt wins among equal estimates.
    """

    def __init__(self, repository: ITimetableRepository, detector: ConflictDetector,
                 weights: Optional[PenaltyWeights] = None):
        self.repository = repository
        self.detector = detector
        self.weights = weights or PenaltyWeights()
        self.logger = logging.getLogger(__name__)

    def place_task(self, task: PlacementTask, context: PlacementContext) -> Optional[Lesson]:
        rooms = self.candidate_rooms(task, context.classrooms)
        slots = self.candidate_slots(task, context)
        if not rooms or not slots:
            self.logger.debug(f"No candidate rooms or slots for {task}")
            return None

        attempts = self.find_attempts(task, context, rooms, slots)
        if not attempts:
            return None

        best = min(attempts, key=lambda attempt: attempt.penalty)
        return self.repository.create_lesson(best.lesson)

    def find_attempts(self, task: PlacementTask, context: PlacementContext,
                      rooms: List[Classroom], slots: List[TimeSlot]) -> List[PlacementAttempt]:
        """All conflict-free candidates in enumeration order"""
        attempts = []
        for day in context.days:
            for slot in slots:
                for room in rooms:
                    lesson = Lesson(
                        schedule_id=context.schedule_id,
                        teaching_load_id=task.teaching_load.id,
                        lesson_type=task.lesson_type,
                        day_of_week=day,
                        time_slot_id=slot.id,
                        classroom_id=room.id,
                        subgroup_number=task.subgroup_number or None,
                        is_double_lesson=task.is_double_lesson,
                    )
                    if self.detector.detect_conflicts(lesson, context.schedule_id):
                        continue
                    attempts.append(PlacementAttempt(lesson, self.estimate_penalty(slot, context)))
        return attempts

    def candidate_rooms(self, task: PlacementTask, classrooms: List[Classroom]) -> List[Classroom]:
        """Rooms of an allowed kind that seat the whole group"""
        allowed = allowed_room_types(task.lesson_type)
        return [
            room for room in classrooms
            if room.type in allowed and room.fits(task.student_count)
        ]

    def candidate_slots(self, task: PlacementTask, context: PlacementContext) -> List[TimeSlot]:
        """Slots of the group's shift, or all slots for shift-agnostic groups"""
        if context.reference_year is None:
            shift = task.group.shift
        else:
            shift = task.group.required_shift(context.reference_year)
        if shift is None:
            return list(context.time_slots)
        return [slot for slot in context.time_slots if slot.shift == shift]

    def estimate_penalty(self, slot: TimeSlot, context: PlacementContext) -> float:
        """Cheap time-of-day cost used to rank feasible candidates"""
        penalty = 0.0
        if slot.is_first_of_shift():
            penalty += self.weights.early_lesson_penalty
        is_last_of_shift = slot.pair_number == context.last_pairs.get(slot.shift)
        ordinal = context.slot_ordinals.get(slot.id, slot.id)
        if is_last_of_shift or ordinal >= self.weights.late_slot_threshold:
            penalty += self.weights.late_lesson_penalty
        return penalty
