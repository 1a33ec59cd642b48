"""Performance measurement of generation and optimization phases"""
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class PerformanceMetrics:
    """Timing of one measured block"""
    name: str
    start_time: float
    end_time: Optional[float] = None
    duration: Optional[float] = None
    sub_metrics: List['PerformanceMetrics'] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def complete(self):
        if self.end_time is None:
            self.end_time = time.perf_counter()
            self.duration = self.end_time - self.start_time


class PerformanceProfiler:
    """Nested wall-clock timer of a single run

    Not thread-safe: create one profiler per generation or optimization call.
    """

    def __init__(self):
        self.metrics_stack: List[PerformanceMetrics] = []
        self.completed_metrics: List[PerformanceMetrics] = []
        self.logger = logging.getLogger(__name__)

    @contextmanager
    def measure(self, name: str, **metadata):
        """Time the enclosed block

        Usage:
            with profiler.measure("place_loop", tasks=120) as metric:
                ...
            metric.duration
        """
        metric = PerformanceMetrics(name=name, start_time=time.perf_counter(), metadata=metadata)

        if self.metrics_stack:
            self.metrics_stack[-1].sub_metrics.append(metric)
        self.metrics_stack.append(metric)

        try:
            yield metric
        finally:
            metric.complete()
            self.metrics_stack.pop()
            if not self.metrics_stack:
                self.completed_metrics.append(metric)
            self.logger.debug(f"Performance: {name} took {metric.duration:.3f}s")

    def durations(self) -> Dict[str, float]:
        """Seconds per measured block, outer blocks first"""
        result: Dict[str, float] = {}
        pending = list(self.completed_metrics)
        while pending:
            metric = pending.pop(0)
            result[metric.name] = metric.duration or 0.0
            pending.extend(metric.sub_metrics)
        return result
