"""Mixin that gives a class its own logger"""
import logging
from typing import Optional


class LoggingMixin:
    """Adds a logger named after the concrete class

    Usage:
        class PenaltyCalculator(LoggingMixin):
            def calculate(self):
                self.logger.info("scoring")
    """

    @property
    def logger(self) -> logging.Logger:
        if not hasattr(self, '_logger'):
            self._logger = logging.getLogger(
                f"{self.__class__.__module__}.{self.__class__.__name__}"
            )
        return self._logger

    def log_info(self, message: str, *args, **kwargs) -> None:
        self.logger.info(message, *args, **kwargs)

    def log_error(self, message: str, *args, **kwargs) -> None:
        self.logger.error(message, *args, **kwargs)

    def log_performance(
        self,
        operation: str,
        elapsed_time: float,
        item_count: Optional[int] = None
    ) -> None:
        """Log elapsed time and throughput

        Args:
            operation: operation name
            elapsed_time: seconds
            item_count: number of processed items
        """
        message = f"{operation} - elapsed: {elapsed_time:.3f}s"
        if item_count is not None:
            rate = item_count / elapsed_time if elapsed_time > 0 else 0
            message += f" ({item_count} items, {rate:.1f}/s)"
        self.log_info(message)
