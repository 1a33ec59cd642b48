"""Domain entities"""
from .classroom import Building, Classroom
from .curriculum import AssessmentType, Curriculum, Discipline
from .group import Group, Subgroup
from .schedule import (
    GeneratedBy,
    Lesson,
    OptimizationAlgorithm,
    OptimizationHistory,
    OptimizationStatus,
    PenaltySettings,
    Schedule,
)
from .semester import Semester, User, UserRole
from .task import PlacementTask
from .teaching_load import ApprovalStatus, Teacher, TeachingLoad

__all__ = [
    'Building',
    'Classroom',
    'AssessmentType',
    'Curriculum',
    'Discipline',
    'Group',
    'Subgroup',
    'GeneratedBy',
    'Lesson',
    'OptimizationAlgorithm',
    'OptimizationHistory',
    'OptimizationStatus',
    'PenaltySettings',
    'Schedule',
    'Semester',
    'User',
    'UserRole',
    'PlacementTask',
    'ApprovalStatus',
    'Teacher',
    'TeachingLoad',
]
