"""Timetable engine exceptions

Precondition and persistence failures are raised; placement and validation
failures are reported as result fields instead.
"""


class TimetableEngineError(Exception):
    """Base class of all engine errors"""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class PreconditionError(TimetableEngineError):
    """A required record or actor is missing; raised before any mutation"""
    pass


class SemesterNotFoundError(PreconditionError):
    def __init__(self, semester_id, details: dict = None):
        super().__init__(f"Semester {semester_id} not found", details)
        self.semester_id = semester_id


class ScheduleNotFoundError(PreconditionError):
    def __init__(self, schedule_id, details: dict = None):
        super().__init__(f"Schedule {schedule_id} not found", details)
        self.schedule_id = schedule_id


class DispatcherRequiredError(PreconditionError):
    """The acting user is missing or does not hold the dispatcher role"""
    def __init__(self, message: str, user_id=None, details: dict = None):
        super().__init__(message, details)
        self.user_id = user_id


class PersistenceError(TimetableEngineError):
    """A repository write or read failed"""
    def __init__(self, message: str, entity: str = None, entity_id=None, details: dict = None):
        super().__init__(message, details)
        self.entity = entity
        self.entity_id = entity_id


class OptimizationError(TimetableEngineError):
    """An optimization run was aborted"""
    def __init__(self, message: str, schedule_id=None, iteration: int = None, details: dict = None):
        super().__init__(message, details)
        self.schedule_id = schedule_id
        self.iteration = iteration


class ConfigurationError(TimetableEngineError):
    """Configuration values are invalid"""
    def __init__(self, message: str, config_key: str = None, details: dict = None):
        super().__init__(message, details)
        self.config_key = config_key


class PublicationError(TimetableEngineError):
    """A schedule failed validation and cannot be published"""
    def __init__(self, message: str, validation=None, details: dict = None):
        super().__init__(message, details)
        self.validation = validation


class LessonValidationError(TimetableEngineError):
    """A single lesson failed validation"""
    def __init__(self, message: str, errors: list = None, details: dict = None):
        super().__init__(message, details)
        self.errors = errors or []
