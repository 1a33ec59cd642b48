"""Performance measurement"""
from .profiler import PerformanceMetrics, PerformanceProfiler

__all__ = ['PerformanceMetrics', 'PerformanceProfiler']
