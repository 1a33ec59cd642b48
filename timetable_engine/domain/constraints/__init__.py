"""Penalty constraints"""
from .base import (
    Constraint,
    ConstraintResult,
    ConstraintType,
    HardConstraint,
    PenaltyViolation,
    ScheduleSnapshot,
    SoftConstraint,
)
from .hard_constraints import (
    GroupDoubleBookingConstraint,
    RoomDoubleBookingConstraint,
    RoomOverflowConstraint,
    ShiftViolationConstraint,
    TeacherDoubleBookingConstraint,
    WrongSpecializationConstraint,
    default_hard_constraints,
)
from .soft_constraints import (
    BuildingChangeConstraint,
    ClassroomChangeConstraint,
    StudentGapConstraint,
    TeacherGapConstraint,
    TimePreferenceConstraint,
    default_soft_constraints,
)

__all__ = [
    'Constraint',
    'ConstraintResult',
    'ConstraintType',
    'HardConstraint',
    'PenaltyViolation',
    'ScheduleSnapshot',
    'SoftConstraint',
    'GroupDoubleBookingConstraint',
    'RoomDoubleBookingConstraint',
    'RoomOverflowConstraint',
    'ShiftViolationConstraint',
    'TeacherDoubleBookingConstraint',
    'WrongSpecializationConstraint',
    'default_hard_constraints',
    'BuildingChangeConstraint',
    'ClassroomChangeConstraint',
    'StudentGapConstraint',
    'TeacherGapConstraint',
    'TimePreferenceConstraint',
    'default_soft_constraints',
]
