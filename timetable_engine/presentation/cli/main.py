"""Command line interface"""
import argparse
import json
import sys
from pathlib import Path

from ...application.timetable_service import TimetableService
from ...application.use_cases.request_models import GenerationOptions
from ...domain.exceptions import PublicationError, TimetableEngineError
from ...infrastructure.config.engine_config import EngineConfigLoader
from ...infrastructure.config.logging_config import LoggingConfig
from ...infrastructure.repositories.csv_repository import CsvTimetableRepository
from ...shared.mixins.logging_mixin import LoggingMixin


class TimetableCLI(LoggingMixin):
    """CLI of the timetable engine"""

    def __init__(self):
        super().__init__()
        self.setup_logging()

    def setup_logging(self):
        LoggingConfig.setup_production_logging()

    def run(self, args=None):
        """Parse arguments and dispatch to a command handler

        Returns:
            process exit code
        """
        parser = self.create_parser()
        parsed_args = parser.parse_args(args)

        if parsed_args.verbose:
            LoggingConfig.setup_development_logging()
        elif parsed_args.quiet:
            LoggingConfig.setup_quiet_logging()

        handlers = {
            "generate": self.handle_generate_command,
            "optimize": self.handle_optimize_command,
            "evaluate": self.handle_evaluate_command,
            "conflicts": self.handle_conflicts_command,
            "validate": self.handle_validate_command,
            "publish": self.handle_publish_command,
            "stats": self.handle_stats_command,
            "group-lessons": self.handle_group_lessons_command,
            "teacher-lessons": self.handle_teacher_lessons_command,
            "clone": self.handle_clone_command,
        }
        handler = handlers.get(parsed_args.command)
        if handler is None:
            parser.print_help()
            return 1

        try:
            repository = CsvTimetableRepository(parsed_args.data_dir)
            config = EngineConfigLoader(parsed_args.config).load()
            service = TimetableService(repository, config)
            return handler(service, repository, parsed_args)
        except TimetableEngineError as e:
            self.log_error(f"Execution failed: {e}")
            self.print_json({'error': type(e).__name__, 'message': e.message, 'details': e.details})
            return 1

    def create_parser(self):
        parser = argparse.ArgumentParser(
            description="University timetable engine",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  %(prog)s generate 1 --user 1                 # build a draft schedule for semester 1
  %(prog)s generate 1 --user 1 --optimize 500  # build, then run 500 local search moves
  %(prog)s optimize 3 --iterations 1000        # improve schedule 3
  %(prog)s evaluate 3                          # penalty breakdown
  %(prog)s conflicts 3                         # hard conflicts per lesson
  %(prog)s validate 3                          # completeness and hour checks
  %(prog)s publish 3                           # publish a valid schedule
  %(prog)s group-lessons 3 12                  # week of group 12
  %(prog)s clone 3 --user 1 --name "Spring"    # manual draft copy of schedule 3
            """
        )

        parser.add_argument("--verbose", "-v", action="store_true", help="debug logging")
        parser.add_argument("--quiet", "-q", action="store_true", help="warnings and errors only")
        parser.add_argument(
            "--data-dir",
            type=Path,
            default=Path("data"),
            help="directory of CSV data files (default: data)"
        )
        parser.add_argument(
            "--config",
            type=Path,
            default=None,
            help="engine config JSON (default: config/engine_config.json)"
        )

        subparsers = parser.add_subparsers(dest="command", help="available commands")

        generate_parser = subparsers.add_parser("generate", help="generate a schedule")
        generate_parser.add_argument("semester_id", type=int, help="semester to schedule")
        generate_parser.add_argument("--user", type=int, required=True, dest="user_id",
                                     help="acting dispatcher user id")
        generate_parser.add_argument("--max-iterations", type=int, default=None,
                                     help="maximum placement attempts")
        generate_parser.add_argument("--optimize", type=int, default=None, dest="optimization_iterations",
                                     help="local search iterations after construction")
        generate_parser.add_argument("--target", type=float, default=None, dest="target_penalty",
                                     help="skip optimization at or below this penalty")
        generate_parser.add_argument("--no-history", action="store_true",
                                     help="do not record optimization history")

        optimize_parser = subparsers.add_parser("optimize", help="improve an existing schedule")
        optimize_parser.add_argument("schedule_id", type=int)
        optimize_parser.add_argument("--iterations", type=int, default=None,
                                     help="proposed moves (default from config)")

        for name, help_text in (("evaluate", "penalty breakdown of a schedule"),
                                ("conflicts", "list hard conflicts of a schedule"),
                                ("validate", "validate a schedule"),
                                ("publish", "publish a valid schedule"),
                                ("stats", "schedule statistics")):
            command_parser = subparsers.add_parser(name, help=help_text)
            command_parser.add_argument("schedule_id", type=int)

        group_parser = subparsers.add_parser("group-lessons", help="lessons of a group")
        group_parser.add_argument("schedule_id", type=int)
        group_parser.add_argument("group_id", type=int)

        teacher_parser = subparsers.add_parser("teacher-lessons", help="lessons of a teacher")
        teacher_parser.add_argument("schedule_id", type=int)
        teacher_parser.add_argument("teacher_id", type=int)

        clone_parser = subparsers.add_parser("clone", help="copy a schedule into a manual draft")
        clone_parser.add_argument("schedule_id", type=int)
        clone_parser.add_argument("--user", type=int, required=True, dest="user_id",
                                  help="user recorded as the creator")
        clone_parser.add_argument("--name", default=None, help="name of the copy")
        clone_parser.add_argument("--semester", type=int, default=None, dest="semester_id",
                                  help="semester of the copy (default: the source semester)")

        return parser

    def handle_generate_command(self, service, repository, args):
        defaults = service.generator.default_options()
        options = GenerationOptions(
            max_iterations=args.max_iterations if args.max_iterations is not None else defaults.max_iterations,
            target_penalty=args.target_penalty if args.target_penalty is not None else defaults.target_penalty,
            save_progress=not args.no_history and defaults.save_progress,
            optimization_iterations=(
                args.optimization_iterations if args.optimization_iterations is not None
                else defaults.optimization_iterations
            ),
        )
        self.log_info(f"Generating schedule for semester {args.semester_id}")
        result = service.generate_schedule(args.semester_id, args.user_id, options)
        repository.flush()
        self.log_performance("generate", result.duration, result.placed_count)
        self.print_json(result.to_dict())
        return 0 if not result.unplaced_tasks else 2

    def handle_optimize_command(self, service, repository, args):
        result = service.optimize_schedule(args.schedule_id, args.iterations)
        repository.flush()
        self.print_json(result.to_dict())
        return 0

    def handle_evaluate_command(self, service, repository, args):
        report = service.evaluate_schedule(args.schedule_id)
        self.print_json(report.to_dict())
        return 0 if report.is_feasible else 2

    def handle_conflicts_command(self, service, repository, args):
        reports = service.detect_conflicts(args.schedule_id)
        self.print_json({
            'stats': service.get_conflict_stats(args.schedule_id),
            'lessons': [report.to_dict() for report in reports],
        })
        return 0 if not reports else 2

    def handle_validate_command(self, service, repository, args):
        report = service.validate_schedule(args.schedule_id)
        self.print_json(report.to_dict())
        return 0 if report.is_valid else 2

    def handle_publish_command(self, service, repository, args):
        try:
            schedule = service.publish_schedule(args.schedule_id)
        except PublicationError as e:
            self.log_error(e.message)
            self.print_json(e.validation.to_dict() if e.validation else {'message': e.message})
            return 2
        repository.flush()
        self.print_json({'schedule_id': schedule.id, 'is_published': schedule.is_published,
                         'is_active': schedule.is_active})
        return 0

    def handle_stats_command(self, service, repository, args):
        self.print_json(service.get_schedule_stats(args.schedule_id))
        return 0

    def handle_group_lessons_command(self, service, repository, args):
        lessons = service.lessons_for_group(args.schedule_id, args.group_id)
        self.print_json([lesson.to_dict() for lesson in lessons])
        return 0

    def handle_teacher_lessons_command(self, service, repository, args):
        lessons = service.lessons_for_teacher(args.schedule_id, args.teacher_id)
        self.print_json([lesson.to_dict() for lesson in lessons])
        return 0

    def handle_clone_command(self, service, repository, args):
        schedule = service.clone_schedule(args.schedule_id, args.user_id, args.name, args.semester_id)
        repository.flush()
        self.print_json({
            'schedule_id': schedule.id,
            'name': schedule.name,
            'semester_id': schedule.semester_id,
            'generated_by': schedule.generated_by.value,
            'lesson_count': len(repository.find_lessons(schedule.id)),
        })
        return 0

    def print_json(self, payload):
        print(json.dumps(payload, ensure_ascii=False, indent=2, default=str))


def main():
    cli = TimetableCLI()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
