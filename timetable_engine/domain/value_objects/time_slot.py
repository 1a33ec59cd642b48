"""Time slot and calendar value objects"""
from dataclasses import dataclass
from datetime import time
from enum import Enum
from typing import Iterable, Dict, List


class Shift(Enum):
    """Daily teaching window"""
    MORNING = "MORNING"      # first shift
    AFTERNOON = "AFTERNOON"  # second shift


class DayOfWeek(Enum):
    """Teaching day"""
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"

    @classmethod
    def teaching_days(cls) -> List['DayOfWeek']:
        """The six teaching days in calendar order"""
        return list(cls)


_SHIFT_ORDER = {Shift.MORNING: 0, Shift.AFTERNOON: 1}


@dataclass(frozen=True)
class TimeSlot:
    """A numbered pair inside a shift (immutable reference data)"""

    id: int
    shift: Shift
    pair_number: int
    start_time: time
    end_time: time

    def __post_init__(self):
        if self.pair_number < 1:
            raise ValueError(f"Invalid pair number: {self.pair_number}")
        if self.end_time <= self.start_time:
            raise ValueError(f"Time slot {self.id} ends before it starts")

    def __str__(self) -> str:
        return (f"{self.shift.value} #{self.pair_number} "
                f"({self.start_time:%H:%M}-{self.end_time:%H:%M})")

    @property
    def sort_key(self) -> tuple:
        """Chronological ordering key"""
        return (self.start_time, _SHIFT_ORDER[self.shift], self.pair_number)

    def is_first_of_shift(self) -> bool:
        return self.pair_number == 1


def build_slot_ordinals(time_slots: Iterable[TimeSlot]) -> Dict[int, int]:
    """Map every time slot id to its 1-based chronological position in the day

    Pair numbers restart in every shift, so gaps and adjacency are measured
    on this daily ordinal instead.

    Args:
        time_slots: all time slots of the institution

    Returns:
        {time_slot_id: ordinal}
    """
    ordered = sorted(time_slots, key=lambda slot: slot.sort_key)
    return {slot.id: index for index, slot in enumerate(ordered, start=1)}


def last_pair_by_shift(time_slots: Iterable[TimeSlot]) -> Dict[Shift, int]:
    """Highest pair number of each shift"""
    result: Dict[Shift, int] = {}
    for slot in time_slots:
        result[slot.shift] = max(result.get(slot.shift, 0), slot.pair_number)
    return result
