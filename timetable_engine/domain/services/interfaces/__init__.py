"""Domain service interfaces"""
from .lesson_placement_service import LessonPlacementService, PlacementContext
from .local_search_optimizer import (
    AcceptanceCriterion,
    LocalSearchOptimizer,
    Move,
    MoveStrategy,
    OptimizationResult,
)

__all__ = [
    'LessonPlacementService',
    'PlacementContext',
    'AcceptanceCriterion',
    'LocalSearchOptimizer',
    'Move',
    'MoveStrategy',
    'OptimizationResult',
]
