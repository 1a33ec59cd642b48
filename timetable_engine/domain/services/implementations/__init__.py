"""Domain service implementations"""
from .greedy_lesson_placement_service import GreedyLessonPlacementService, PlacementAttempt
from .random_move_optimizer import (
    HillClimbingAcceptance,
    RandomMoveOptimizer,
    RandomSlotMoveStrategy,
    SimulatedAnnealingAcceptance,
)

__all__ = [
    'GreedyLessonPlacementService',
    'PlacementAttempt',
    'HillClimbingAcceptance',
    'RandomMoveOptimizer',
    'RandomSlotMoveStrategy',
    'SimulatedAnnealingAcceptance',
]
