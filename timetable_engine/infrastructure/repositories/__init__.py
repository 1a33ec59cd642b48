"""Repository implementations"""
from .csv_repository import CsvTimetableRepository
from .in_memory_repository import InMemoryTimetableRepository

__all__ = ['CsvTimetableRepository', 'InMemoryTimetableRepository']
