"""Value objects"""
from .time_slot import Shift, DayOfWeek, TimeSlot, build_slot_ordinals, last_pair_by_shift
from .lesson_type import LessonType, ClassroomType, allowed_room_types, is_room_type_allowed
from .conflict import Conflict, ConflictType, ConflictReport, Severity
from .penalty_weights import PenaltyWeights, HARD_VIOLATION_KEYS

__all__ = [
    'Shift',
    'DayOfWeek',
    'TimeSlot',
    'build_slot_ordinals',
    'last_pair_by_shift',
    'LessonType',
    'ClassroomType',
    'allowed_room_types',
    'is_room_type_allowed',
    'Conflict',
    'ConflictType',
    'ConflictReport',
    'Severity',
    'PenaltyWeights',
    'HARD_VIOLATION_KEYS',
]
