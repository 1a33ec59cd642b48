"""Penalty weight table used by the penalty calculator"""
import re
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Mapping

from ..exceptions import ConfigurationError


HARD_VIOLATION_KEYS = (
    'teacher_double_booking',
    'room_double_booking',
    'group_double_booking',
    'room_overflow',
    'wrong_specialization',
    'shift_violation',
)

DEFAULT_HARD_WEIGHT = 1000.0


def _default_hard_weights() -> Dict[str, float]:
    return {key: DEFAULT_HARD_WEIGHT for key in HARD_VIOLATION_KEYS}


def _to_snake_case(key: str) -> str:
    if key.isupper():
        return key.lower()
    return re.sub(r'(?<!^)(?=[A-Z])', '_', key).lower()


@dataclass(frozen=True)
class PenaltyWeights:
    """Hard and soft constraint weights

    An explicit configuration object handed to each calculator instance, so
    semesters with different settings never share state.
    """

    hard: Dict[str, float] = field(default_factory=_default_hard_weights)
    student_gap_penalty: float = 50.0
    teacher_gap_penalty: float = 5.0
    early_lesson_penalty: float = 10.0
    late_lesson_penalty: float = 15.0
    classroom_change_penalty: float = 20.0
    building_change_penalty: float = 30.0
    late_slot_threshold: int = 7

    def hard_weight(self, key: str) -> float:
        return self.hard.get(key, DEFAULT_HARD_WEIGHT)

    @classmethod
    def soft_keys(cls) -> tuple:
        return tuple(f.name for f in fields(cls) if f.name != 'hard')

    @classmethod
    def from_mapping(cls, penalties: Mapping[str, Any]) -> 'PenaltyWeights':
        """Build weights from a settings mapping

        Keys may be snake_case or camelCase; keys that are not part of the
        weight table are ignored. Missing keys keep their defaults.

        Args:
            penalties: the ``penalties`` mapping of a PenaltySettings record

        Returns:
            PenaltyWeights

        Raises:
            ConfigurationError: a value is not a non-negative number
        """
        if not isinstance(penalties, Mapping):
            raise ConfigurationError(
                f"Penalty settings must be a mapping, got {type(penalties).__name__}"
            )

        defaults = cls()
        hard = dict(defaults.hard)
        soft: Dict[str, Any] = {}
        soft_keys = set(cls.soft_keys())

        for raw_key, raw_value in penalties.items():
            key = _to_snake_case(str(raw_key))
            if key not in hard and key not in soft_keys:
                continue
            value = cls._coerce(key, raw_value)
            if key in hard:
                hard[key] = value
            elif key == 'late_slot_threshold':
                if value != int(value) or value < 1:
                    raise ConfigurationError(
                        f"late_slot_threshold must be a positive integer: {raw_value!r}",
                        config_key=key
                    )
                soft[key] = int(value)
            else:
                soft[key] = value

        return replace(defaults, hard=hard, **soft)

    @staticmethod
    def _coerce(key: str, value: Any) -> float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigurationError(f"Penalty '{key}' is not a number: {value!r}", config_key=key)
        if value < 0:
            raise ConfigurationError(f"Penalty '{key}' is negative: {value!r}", config_key=key)
        return float(value)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = dict(self.hard)
        for key in self.soft_keys():
            result[key] = getattr(self, key)
        return result
