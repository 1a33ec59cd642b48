"""Shared mixins"""
from .logging_mixin import LoggingMixin

__all__ = ['LoggingMixin']
