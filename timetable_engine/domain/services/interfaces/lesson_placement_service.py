"""Lesson placement service interface"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ...entities.classroom import Classroom
from ...entities.schedule import Lesson
from ...entities.task import PlacementTask
from ...value_objects.time_slot import DayOfWeek, Shift, TimeSlot, build_slot_ordinals, last_pair_by_shift


@dataclass
class PlacementContext:
    """Reference data shared by all placements of one generation run"""

    schedule_id: int
    classrooms: List[Classroom]
    time_slots: List[TimeSlot]
    reference_year: Optional[int] = None
    days: List[DayOfWeek] = field(default_factory=DayOfWeek.teaching_days)
    slot_ordinals: Dict[int, int] = field(default_factory=dict)
    last_pairs: Dict[Shift, int] = field(default_factory=dict)

    def __post_init__(self):
        if not self.slot_ordinals:
            self.slot_ordinals = build_slot_ordinals(self.time_slots)
        if not self.last_pairs:
            self.last_pairs = last_pair_by_shift(self.time_slots)


class LessonPlacementService(ABC):
    """Places one task into a schedule"""

    @abstractmethod
    def place_task(self, task: PlacementTask, context: PlacementContext) -> Optional[Lesson]:
        """Place a task and persist the lesson

        Args:
            task: session to place
            context: reference data of the run

        Returns:
            the persisted lesson, or None when no feasible placement exists
        """
        pass

    @abstractmethod
    def candidate_rooms(self, task: PlacementTask, classrooms: List[Classroom]) -> List[Classroom]:
        pass

    @abstractmethod
    def candidate_slots(self, task: PlacementTask, context: PlacementContext) -> List[TimeSlot]:
        pass
