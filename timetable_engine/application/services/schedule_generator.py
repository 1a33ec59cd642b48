"""Schedule generator

Construction runs as an explicit state machine:

    CREATE_SCHEDULE -> LOAD_DATA -> BUILD_TASKS -> PRIORITIZE -> PLACE_LOOP
        -> EVALUATE [-> OPTIMIZE] [-> PERSIST_HISTORY] -> DONE

Preconditions (semester, dispatcher) are verified before the first phase,
so a rejected request writes nothing.
"""
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set

from ..use_cases.request_models import GenerationOptions, GenerationResult, UnplacedTask
from ...domain.entities.classroom import Classroom
from ...domain.entities.schedule import (
    GeneratedBy,
    OptimizationAlgorithm,
    OptimizationHistory,
    Schedule,
)
from ...domain.entities.semester import Semester
from ...domain.entities.task import PlacementTask
from ...domain.entities.teaching_load import TeachingLoad
from ...domain.exceptions import (
    DispatcherRequiredError,
    ScheduleNotFoundError,
    SemesterNotFoundError,
)
from ...domain.interfaces.repositories import ITimetableRepository
from ...domain.services.conflict_detector import ConflictDetector
from ...domain.services.implementations.greedy_lesson_placement_service import GreedyLessonPlacementService
from ...domain.services.implementations.random_move_optimizer import (
    HillClimbingAcceptance,
    RandomMoveOptimizer,
    RandomSlotMoveStrategy,
    SimulatedAnnealingAcceptance,
)
from ...domain.services.interfaces.lesson_placement_service import PlacementContext
from ...domain.services.interfaces.local_search_optimizer import AcceptanceCriterion, OptimizationResult
from ...domain.services.lesson_resolver import LessonResolver
from ...domain.services.penalty_calculator import PenaltyCalculator, PenaltyReport, load_penalty_settings
from ...domain.services.task_builder import TaskBuilder
from ...domain.value_objects.time_slot import TimeSlot
from ...infrastructure.config.engine_config import EngineConfig
from ...infrastructure.config.logging_config import ScheduleGenerationLogger, get_schedule_logger
from ...infrastructure.performance.profiler import PerformanceProfiler
from ...shared.utils.concurrency import CancellationToken, ScheduleLockRegistry


class GenerationPhase(Enum):
    INIT = "INIT"
    CREATE_SCHEDULE = "CREATE_SCHEDULE"
    LOAD_DATA = "LOAD_DATA"
    BUILD_TASKS = "BUILD_TASKS"
    PRIORITIZE = "PRIORITIZE"
    PLACE_LOOP = "PLACE_LOOP"
    EVALUATE = "EVALUATE"
    OPTIMIZE = "OPTIMIZE"
    PERSIST_HISTORY = "PERSIST_HISTORY"
    DONE = "DONE"


_TRANSITIONS: Dict[GenerationPhase, Set[GenerationPhase]] = {
    GenerationPhase.INIT: {GenerationPhase.CREATE_SCHEDULE},
    GenerationPhase.CREATE_SCHEDULE: {GenerationPhase.LOAD_DATA},
    GenerationPhase.LOAD_DATA: {GenerationPhase.BUILD_TASKS},
    GenerationPhase.BUILD_TASKS: {GenerationPhase.PRIORITIZE},
    GenerationPhase.PRIORITIZE: {GenerationPhase.PLACE_LOOP},
    GenerationPhase.PLACE_LOOP: {GenerationPhase.EVALUATE},
    GenerationPhase.EVALUATE: {GenerationPhase.OPTIMIZE, GenerationPhase.PERSIST_HISTORY,
                               GenerationPhase.DONE},
    GenerationPhase.OPTIMIZE: {GenerationPhase.PERSIST_HISTORY, GenerationPhase.DONE},
    GenerationPhase.PERSIST_HISTORY: {GenerationPhase.DONE},
    GenerationPhase.DONE: set(),
}


@dataclass
class GenerationRun:
    """Mutable state of one generation request"""
    semester: Semester
    acting_user_id: int
    options: GenerationOptions
    phase: GenerationPhase = GenerationPhase.INIT
    schedule: Optional[Schedule] = None
    teaching_loads: List[TeachingLoad] = field(default_factory=list)
    classrooms: List[Classroom] = field(default_factory=list)
    time_slots: List[TimeSlot] = field(default_factory=list)
    tasks: List[PlacementTask] = field(default_factory=list)
    placed_count: int = 0
    attempted: int = 0
    unplaced: List[UnplacedTask] = field(default_factory=list)
    evaluation: Optional[PenaltyReport] = None
    construction_evaluation: Optional[PenaltyReport] = None
    optimization: Optional[OptimizationResult] = None
    history_id: Optional[int] = None
    logger: ScheduleGenerationLogger = field(default_factory=lambda: get_schedule_logger(__name__))

    def advance(self, phase: GenerationPhase) -> None:
        if phase not in _TRANSITIONS[self.phase]:
            raise RuntimeError(f"Illegal generation phase transition {self.phase.value} -> {phase.value}")
        self.phase = phase


class ScheduleGenerator:
    """Builds a schedule for a semester and optionally optimizes it"""

    def __init__(self, repository: ITimetableRepository,
                 config: Optional[EngineConfig] = None,
                 rng: Optional[random.Random] = None,
                 locks: Optional[ScheduleLockRegistry] = None):
        self.repository = repository
        self.config = config or EngineConfig()
        self.rng = rng or random.Random(self.config.random_seed)
        self.locks = locks or ScheduleLockRegistry()

    # --- construction ------------------------------------------------------

    def generate(self, semester_id: int, acting_user_id: int,
                 options: Optional[GenerationOptions] = None) -> GenerationResult:
        """Generate a new draft schedule for a semester

        Args:
            semester_id: semester to schedule
            acting_user_id: user the schedule is created by; must be a dispatcher
            options: generation options (defaults from the engine config)

        Returns:
            GenerationResult

        Raises:
            SemesterNotFoundError: the semester does not exist
            DispatcherRequiredError: the acting user is missing or not a dispatcher
        """
        options = options or self.default_options()
        semester = self._check_preconditions(semester_id, acting_user_id)
        run = GenerationRun(semester=semester, acting_user_id=acting_user_id, options=options,
                            logger=get_schedule_logger(__name__, semester_id=semester_id))
        profiler = PerformanceProfiler()

        weights = load_penalty_settings(self.repository, semester_id)
        resolver = LessonResolver(self.repository)
        detector = ConflictDetector(self.repository, resolver)
        calculator = PenaltyCalculator(self.repository, weights, resolver)
        placement = GreedyLessonPlacementService(self.repository, detector, weights)

        with profiler.measure("generate", semester_id=semester_id) as total:
            self._create_schedule(run)
            run.logger.set_context(schedule_id=run.schedule.id)

            # lessons of the new schedule are only written under its lock
            with self.locks.hold(run.schedule.id):
                self._load_data(run)
                self._build_tasks(run)
                self._prioritize(run)

                with profiler.measure("place_loop", tasks=len(run.tasks)) as construction:
                    self._place_loop(run, placement, resolver)

                self._evaluate(run, calculator)
                run.construction_evaluation = run.evaluation

                if self._needs_optimization(run):
                    run.advance(GenerationPhase.OPTIMIZE)
                    run.logger.phase_start(run.phase.value, iterations=options.optimization_iterations)
                    with profiler.measure("optimize", iterations=options.optimization_iterations):
                        run.optimization = self._optimizer(detector, calculator).optimize(
                            run.schedule.id, options.optimization_iterations
                        )
                    run.evaluation = calculator.calculate_total_penalty(run.schedule.id)
                    self._store_score(run)
                    run.logger.phase_end(run.phase.value, after=run.evaluation.total_penalty)

                if options.save_progress:
                    run.advance(GenerationPhase.PERSIST_HISTORY)
                    run.history_id = self._persist_history(run, construction.duration)

                run.advance(GenerationPhase.DONE)

        return self._result(run, total.duration, profiler.durations())

    def default_options(self) -> GenerationOptions:
        return GenerationOptions(
            max_iterations=self.config.max_iterations,
            target_penalty=self.config.target_penalty,
            save_progress=self.config.save_progress,
            optimization_iterations=self.config.generation_optimization_iterations,
        )

    def _check_preconditions(self, semester_id: int, acting_user_id: int) -> Semester:
        semester = self.repository.get_semester(semester_id)
        if semester is None:
            raise SemesterNotFoundError(semester_id)

        user = self.repository.get_user(acting_user_id)
        if user is None:
            raise DispatcherRequiredError(f"User {acting_user_id} not found", user_id=acting_user_id)
        if not user.is_dispatcher:
            raise DispatcherRequiredError(
                f"User {acting_user_id} has role {user.role.value}; a dispatcher is required",
                user_id=acting_user_id,
            )
        return semester

    def _create_schedule(self, run: GenerationRun) -> None:
        run.advance(GenerationPhase.CREATE_SCHEDULE)
        semester = run.semester
        run.schedule = self.repository.create_schedule(Schedule(
            semester_id=semester.id,
            name=f"Schedule - Semester {semester.number}",
            created_by=run.acting_user_id,
            semester_number=semester.number,
            academic_year=semester.academic_year,
            is_active=False,
            is_published=False,
            generated_by=GeneratedBy.ALGORITHM,
        ))
        run.logger.info(f"Created draft schedule {run.schedule.id} for {semester}")

    def _load_data(self, run: GenerationRun) -> None:
        run.advance(GenerationPhase.LOAD_DATA)
        run.teaching_loads = self.repository.find_teaching_loads(run.semester.id)
        run.classrooms = self.repository.find_classrooms()
        run.time_slots = self.repository.find_time_slots()
        run.logger.info(
            f"Loaded {len(run.teaching_loads)} teaching loads, {len(run.classrooms)} classrooms, "
            f"{len(run.time_slots)} time slots"
        )

    def _build_tasks(self, run: GenerationRun) -> None:
        run.advance(GenerationPhase.BUILD_TASKS)
        builder = TaskBuilder(self.repository, self.config.hours_per_session)
        run.tasks = builder.create_tasks(run.teaching_loads)
        run.logger.info(f"Created {len(run.tasks)} tasks")

    def _prioritize(self, run: GenerationRun) -> None:
        run.advance(GenerationPhase.PRIORITIZE)
        run.tasks = TaskBuilder(self.repository, self.config.hours_per_session).prioritize_tasks(run.tasks)

    def _place_loop(self, run: GenerationRun, placement: GreedyLessonPlacementService,
                    resolver: LessonResolver) -> None:
        run.advance(GenerationPhase.PLACE_LOOP)
        run.logger.phase_start(run.phase.value, tasks=len(run.tasks))

        context = PlacementContext(
            schedule_id=run.schedule.id,
            classrooms=run.classrooms,
            time_slots=run.time_slots,
            reference_year=resolver.reference_year(run.schedule.id),
            days=list(self.config.days),
        )
        max_iterations = run.options.max_iterations

        for index, task in enumerate(run.tasks):
            if index >= max_iterations:
                run.logger.warning(f"Iteration limit {max_iterations} reached")
                run.unplaced.extend(
                    UnplacedTask(rest, "iteration limit reached") for rest in run.tasks[index:]
                )
                break

            run.attempted += 1
            lesson = placement.place_task(task, context)
            if lesson is not None:
                run.placed_count += 1
                if run.placed_count % 10 == 0:
                    run.logger.debug(f"Placed {run.placed_count}/{len(run.tasks)}")
            else:
                run.logger.warning(f"Could not place {task}")
                run.unplaced.append(UnplacedTask(task, "no feasible placement"))

        run.logger.phase_end(run.phase.value, placed=run.placed_count, unplaced=len(run.unplaced))

    def _evaluate(self, run: GenerationRun, calculator: PenaltyCalculator) -> None:
        run.advance(GenerationPhase.EVALUATE)
        run.evaluation = calculator.calculate_total_penalty(run.schedule.id)
        self._store_score(run)
        run.logger.info(
            f"Total penalty {run.evaluation.total_penalty} "
            f"(hard {run.evaluation.hard_penalty}, soft {run.evaluation.soft_penalty})"
        )

    def _store_score(self, run: GenerationRun) -> None:
        run.schedule.optimization_score = run.evaluation.total_penalty
        run.schedule = self.repository.update_schedule(run.schedule)

    def _needs_optimization(self, run: GenerationRun) -> bool:
        options = run.options
        if options.optimization_iterations <= 0 or not run.placed_count:
            return False
        if options.target_penalty is None:
            return True
        return run.evaluation.total_penalty > options.target_penalty

    def _persist_history(self, run: GenerationRun, duration: float) -> Optional[int]:
        evaluation = run.construction_evaluation
        entry = self.repository.add_optimization_history(OptimizationHistory(
            schedule_id=run.schedule.id,
            algorithm=OptimizationAlgorithm.GREEDY_BACKTRACKING,
            penalty_before=0.0,
            penalty_after=evaluation.total_penalty,
            iterations_count=run.attempted,
            duration=duration,
            improvements={
                'hard': evaluation.hard_penalty,
                'soft': evaluation.soft_penalty,
                'hard_violations': len(evaluation.violations['hard']),
                'soft_violations': len(evaluation.violations['soft']),
                'placed': run.placed_count,
                'total_tasks': len(run.tasks),
            },
        ))
        return entry.id

    def _result(self, run: GenerationRun, duration: float, timings: Dict[str, float]) -> GenerationResult:
        total = len(run.tasks)
        success_rate = round(run.placed_count / total * 100, 1) if total else 0.0
        target = run.options.target_penalty
        target_reached = target is not None and run.evaluation.total_penalty <= target

        run.logger.info(
            f"Generation finished: schedule {run.schedule.id}, placed {run.placed_count}/{total} "
            f"({success_rate}%), penalty {run.evaluation.total_penalty}"
        )
        return GenerationResult(
            schedule_id=run.schedule.id,
            placed_count=run.placed_count,
            total_tasks=total,
            success_rate=success_rate,
            evaluation=run.evaluation,
            unplaced_tasks=run.unplaced,
            optimization=run.optimization,
            target_reached=target_reached,
            duration=duration,
            history_id=run.history_id,
            timings=timings,
        )

    # --- optimization ------------------------------------------------------

    def optimize(self, schedule_id: int, max_iterations: Optional[int] = None,
                 cancellation_token: Optional[CancellationToken] = None) -> OptimizationResult:
        """Improve an existing schedule by local search

        Args:
            schedule_id: schedule to improve
            max_iterations: proposed moves (defaults from the engine config)
            cancellation_token: checked before every iteration

        Returns:
            OptimizationResult

        Raises:
            ScheduleNotFoundError: the schedule does not exist
            OptimizationError: a move could not be persisted
        """
        schedule = self.repository.get_schedule(schedule_id)
        if schedule is None:
            raise ScheduleNotFoundError(schedule_id)
        if max_iterations is None:
            max_iterations = self.config.optimization_iterations

        resolver = LessonResolver(self.repository)
        detector = ConflictDetector(self.repository, resolver)
        calculator = PenaltyCalculator.for_semester(self.repository, schedule.semester_id, resolver)

        logger = get_schedule_logger(__name__, schedule_id=schedule_id)
        logger.phase_start("OPTIMIZE", iterations=max_iterations)
        with PerformanceProfiler().measure("optimize", schedule_id=schedule_id) as metric:
            result = self._optimizer(detector, calculator).optimize(
                schedule_id, max_iterations, cancellation_token
            )
        logger.phase_end("OPTIMIZE", before=result.before, after=result.after,
                         cancelled=result.cancelled, duration=round(metric.duration, 3))

        schedule = self.repository.get_schedule(schedule_id)
        schedule.optimization_score = result.after
        self.repository.update_schedule(schedule)
        return result

    def _optimizer(self, detector: ConflictDetector, calculator: PenaltyCalculator) -> RandomMoveOptimizer:
        return RandomMoveOptimizer(
            self.repository,
            detector,
            calculator,
            move_strategy=RandomSlotMoveStrategy(list(self.config.days)),
            acceptance=self._acceptance(),
            rng=self.rng,
        )

    def _acceptance(self) -> AcceptanceCriterion:
        if self.config.acceptance == 'simulated_annealing':
            return SimulatedAnnealingAcceptance(self.config.initial_temperature, self.config.cooling_rate)
        return HillClimbingAcceptance()
