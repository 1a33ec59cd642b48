"""Application services"""
from .schedule_generator import GenerationPhase, GenerationRun, ScheduleGenerator

__all__ = ['GenerationPhase', 'GenerationRun', 'ScheduleGenerator']
