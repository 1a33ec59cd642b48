"""Engine configuration loader"""
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from ...domain.exceptions import ConfigurationError
from ...domain.value_objects.time_slot import DayOfWeek
from ...shared.mixins.logging_mixin import LoggingMixin


ACCEPTANCE_STRATEGIES = ('hill_climbing', 'simulated_annealing')


@dataclass
class EngineConfig:
    """Tunable parameters of generation, optimization and validation"""
    days: List[DayOfWeek] = field(default_factory=DayOfWeek.teaching_days)
    hours_per_session: float = 1.5
    # generation
    max_iterations: int = 10000
    target_penalty: float = 0.0
    generation_optimization_iterations: int = 0
    save_progress: bool = True
    # optimization
    optimization_iterations: int = 100
    acceptance: str = 'hill_climbing'
    initial_temperature: float = 100.0
    cooling_rate: float = 0.95
    random_seed: Optional[int] = None
    # validation
    curriculum_tolerance: float = 0.1

    def __post_init__(self):
        if not self.days:
            raise ConfigurationError("At least one teaching day is required", config_key='days')
        if self.hours_per_session <= 0:
            raise ConfigurationError("hours_per_session must be positive", config_key='hours_per_session')
        if self.max_iterations < 0 or self.optimization_iterations < 0 \
                or self.generation_optimization_iterations < 0:
            raise ConfigurationError("Iteration counts cannot be negative", config_key='iterations')
        if self.acceptance not in ACCEPTANCE_STRATEGIES:
            raise ConfigurationError(f"Unknown acceptance strategy: {self.acceptance}",
                                     config_key='acceptance')
        if not 0 <= self.curriculum_tolerance < 1:
            raise ConfigurationError("curriculum_tolerance must be in [0, 1)",
                                     config_key='curriculum_tolerance')


class EngineConfigLoader(LoggingMixin):
    """Reads EngineConfig from a JSON file

    A missing file or malformed content falls back to the defaults.

    File layout:
        {
          "calendar": {"days": ["MONDAY", ...], "hours_per_session": 1.5},
          "generation": {"max_iterations": 10000, "target_penalty": 0,
                         "optimization_iterations": 0, "save_progress": true},
          "optimization": {"iterations": 100, "acceptance": "hill_climbing",
                           "initial_temperature": 100, "cooling_rate": 0.95,
                           "random_seed": null},
          "validation": {"curriculum_tolerance": 0.1}
        }
    """

    DEFAULT_PATH = Path("config/engine_config.json")

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = Path(config_path) if config_path else self.DEFAULT_PATH

    def load(self) -> EngineConfig:
        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            return self.from_dict(data)
        except FileNotFoundError:
            self.logger.warning(f"Config file {self.config_path} not found; using defaults")
            return EngineConfig()
        except (json.JSONDecodeError, ConfigurationError, TypeError, ValueError, KeyError) as e:
            self.logger.error(f"Failed to read config file {self.config_path}: {e}; using defaults")
            return EngineConfig()

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> EngineConfig:
        """Build a config from the JSON layout; absent keys keep defaults"""
        if not isinstance(data, dict):
            raise ConfigurationError("Engine config must be a JSON object")

        calendar = data.get('calendar', {})
        generation = data.get('generation', {})
        optimization = data.get('optimization', {})
        validation = data.get('validation', {})
        defaults = EngineConfig()

        days = defaults.days
        if 'days' in calendar:
            try:
                days = [DayOfWeek(str(day).upper()) for day in calendar['days']]
            except ValueError as e:
                raise ConfigurationError(f"Invalid teaching day: {e}", config_key='days') from e

        return EngineConfig(
            days=days,
            hours_per_session=float(calendar.get('hours_per_session', defaults.hours_per_session)),
            max_iterations=int(generation.get('max_iterations', defaults.max_iterations)),
            target_penalty=float(generation.get('target_penalty', defaults.target_penalty)),
            generation_optimization_iterations=int(
                generation.get('optimization_iterations', defaults.generation_optimization_iterations)
            ),
            save_progress=bool(generation.get('save_progress', defaults.save_progress)),
            optimization_iterations=int(optimization.get('iterations', defaults.optimization_iterations)),
            acceptance=optimization.get('acceptance', defaults.acceptance),
            initial_temperature=float(optimization.get('initial_temperature', defaults.initial_temperature)),
            cooling_rate=float(optimization.get('cooling_rate', defaults.cooling_rate)),
            random_seed=optimization.get('random_seed', defaults.random_seed),
            curriculum_tolerance=float(validation.get('curriculum_tolerance', defaults.curriculum_tolerance)),
        )
