"""Central logging configuration

The CLI picks one of three presets; engine modules only ask for loggers.
"""
import json
import logging
import logging.handlers
from pathlib import Path
from typing import Any, Dict, List, Optional


class LoggingConfig:
    """Root logger presets of the command line interface"""

    # floor levels of chatty packages
    MODULE_LEVELS = {
        'timetable_engine.domain.constraints': logging.WARNING,
        'timetable_engine.infrastructure.repositories': logging.WARNING,
        'timetable_engine.infrastructure.config': logging.WARNING,
    }

    LOG_FILE_BYTES = 10 * 1024 * 1024

    @classmethod
    def setup_logging(cls, log_level: str = 'INFO', log_file: Optional[Path] = None,
                      simple_format: bool = False) -> None:
        """Replace the root handlers with stderr (and optionally a rotating file)"""
        level = getattr(logging, log_level.upper(), logging.INFO)
        if simple_format:
            formatter = logging.Formatter('%(levelname)s: %(message)s')
        else:
            formatter = ContextFormatter('%(asctime)s %(levelname)s [%(name)s] %(message)s',
                                         datefmt='%H:%M:%S')

        handlers: List[logging.Handler] = [logging.StreamHandler()]
        if log_file:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.handlers.RotatingFileHandler(
                log_file, maxBytes=cls.LOG_FILE_BYTES, backupCount=3, encoding='utf-8'
            ))

        root_logger = logging.getLogger()
        root_logger.handlers.clear()
        root_logger.setLevel(level)
        for handler in handlers:
            handler.setFormatter(formatter)
            root_logger.addHandler(handler)

        for module_name, module_level in cls.MODULE_LEVELS.items():
            logging.getLogger(module_name).setLevel(max(module_level, level))

    @classmethod
    def setup_production_logging(cls) -> None:
        cls.setup_logging('WARNING', Path('logs/timetable_engine.log'), simple_format=True)

    @classmethod
    def setup_development_logging(cls) -> None:
        cls.setup_logging('DEBUG', Path('logs/debug.log'))

    @classmethod
    def setup_quiet_logging(cls) -> None:
        cls.setup_logging('ERROR', simple_format=True)


class ContextFormatter(logging.Formatter):
    """Renders the ``context`` extra of a record as a JSON suffix"""

    def format(self, record):
        formatted = super().format(record)
        context = getattr(record, 'context', None)
        if context:
            formatted += f" {json.dumps(context, ensure_ascii=False, default=str)}"
        return formatted


class ScheduleGenerationLogger(logging.LoggerAdapter):
    """Logger adapter carrying the context of one generation or optimization run

    Create one adapter per run; concurrent runs never see each other's
    context. Keyword ``fields`` adds per-message context.
    """

    def __init__(self, logger: logging.Logger, context: Optional[Dict[str, Any]] = None):
        super().__init__(logger, dict(context or {}))

    @property
    def context(self) -> Dict[str, Any]:
        return self.extra

    def set_context(self, **kwargs) -> None:
        self.extra.update(kwargs)

    def process(self, msg, kwargs):
        fields = kwargs.pop('fields', None) or {}
        kwargs['extra'] = {'context': {**self.extra, **fields}}
        return msg, kwargs

    def phase_start(self, phase_name: str, **fields) -> None:
        self.set_context(phase=phase_name)
        self.info(f"{phase_name} started", fields=fields)

    def phase_end(self, phase_name: str, **fields) -> None:
        self.info(f"{phase_name} finished", fields=fields)
        self.extra.pop('phase', None)


def get_schedule_logger(name: str, **context) -> ScheduleGenerationLogger:
    """Fresh run logger for a module (usually ``__name__``)"""
    return ScheduleGenerationLogger(logging.getLogger(name), context)
