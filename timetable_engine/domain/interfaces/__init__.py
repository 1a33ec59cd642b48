"""Domain interfaces"""
from .repositories import ITimetableRepository

__all__ = ['ITimetableRepository']
