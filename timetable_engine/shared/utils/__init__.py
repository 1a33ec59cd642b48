"""Shared utilities"""
from .concurrency import CancellationToken, ScheduleLockRegistry

__all__ = ['CancellationToken', 'ScheduleLockRegistry']
