"""Configuration"""
from .engine_config import EngineConfig, EngineConfigLoader
from .logging_config import LoggingConfig, ScheduleGenerationLogger, get_schedule_logger

__all__ = [
    'EngineConfig',
    'EngineConfigLoader',
    'LoggingConfig',
    'ScheduleGenerationLogger',
    'get_schedule_logger',
]
