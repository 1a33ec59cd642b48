"""Application use case models"""
from .request_models import GenerationOptions, GenerationResult, LessonRequest, UnplacedTask

__all__ = ['GenerationOptions', 'GenerationResult', 'LessonRequest', 'UnplacedTask']
