"""
Portal entry point.

Loads configuration, configures logging, opens the document store and runs
one command against the project board.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import structlog
from pydantic import ValidationError

from portal_shared.schemas.common import COLUMN_ORDER, ProjectStatus, TaskStatus

from . import stats, team_service
from .config import PortalConfig, get_settings, load_config
from .csv_import import SAMPLE_CSV, CSVImportError, load_csv_file
from .notifications import ToastCenter
from .projects import ProjectBoard
from .store import DocumentNotFound, DocumentStore

log = structlog.get_logger()


class CommandError(Exception):
    pass


def configure_logging(level: str = "info", fmt: str = "text") -> None:
    """Configure structlog with the specified level and format."""
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if fmt == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level.upper(), logging.INFO)),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


async def cmd_import(board: ProjectBoard, args: argparse.Namespace) -> None:
    projects = await board.import_projects(load_csv_file(args.file))
    print(f"Imported {len(projects)} project(s)")


async def cmd_list(board: ProjectBoard, args: argparse.Namespace) -> None:
    status = ProjectStatus(args.status) if args.status else None
    for project in board.filtered(status=status, sort=args.sort):
        print(
            f"{project.id}  {project.name} ({project.client})  "
            f"{project.status.value}  {project.priority.value}  "
            f"due {project.due_date.isoformat()}  {stats.progress(project)}%"
        )


async def cmd_board(board: ProjectBoard, args: argparse.Namespace) -> None:
    item = board.item(args.project_id)
    if item is None:
        raise CommandError(f"Project not found: {args.project_id}")
    members = {m.id: m.name for m in await team_service.get_all_team_members(board.store)}
    columns = item.kanban().columns()
    print(f"{item.project.name}  {item.progress}% complete")
    for status in COLUMN_ORDER:
        print(f"\n[{status.value}] ({len(columns[status])})")
        for task in columns[status]:
            owner = members.get(task.assigned_to or "", "")
            suffix = f"  @{owner}" if owner else ""
            print(f"  {task.order:>3}  {task.id}  {task.name}{suffix}")


async def cmd_move(board: ProjectBoard, args: argparse.Namespace) -> None:
    item = board.item(args.project_id)
    if item is None:
        raise CommandError(f"Project not found: {args.project_id}")
    kanban = item.kanban()
    if not kanban.move_to_stage(args.task_id, TaskStatus(args.status)):
        print("Nothing to move")
        return
    print(f"Moved {args.task_id} to {args.status}")


async def cmd_stats(board: ProjectBoard, args: argparse.Namespace) -> None:
    projects = board.projects
    counts = stats.status_counts(projects)
    print(f"Projects: {len(projects)}")
    for status in ProjectStatus:
        print(f"  {status.value:<10} {counts.get(status, 0)}")
    print("\nTop completion:")
    for rate in stats.top_completion(projects):
        print(f"  {rate.completion:5.1f}%  {rate.name}")


COMMANDS = {
    "import": cmd_import,
    "list": cmd_list,
    "board": cmd_board,
    "move": cmd_move,
    "stats": cmd_stats,
}


async def execute(config: PortalConfig, args: argparse.Namespace) -> int:
    """Run one command against a freshly loaded board. Returns the exit status."""
    store = DocumentStore(config.store.db_path)
    toasts = ToastCenter()
    await store.open()
    try:
        board = ProjectBoard(store, toasts, config.board.default_direction)
        await board.load()
        await COMMANDS[args.command](board, args)
        await board.drain()
    finally:
        await store.close()

    errors = [t for t in toasts.toasts if t.level == "error"]
    for toast in errors:
        print(f"Error: {toast.message}", file=sys.stderr)
    return 1 if errors else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="portal", description="Project portal: projects, tasks and kanban boards")
    parser.add_argument(
        "-c", "--config",
        default=None,
        help="Path to configuration file (default: $PORTAL_CONFIG_PATH or portal.yaml)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_import = sub.add_parser("import", help="Import projects from a CSV file")
    p_import.add_argument("file")

    p_list = sub.add_parser("list", help="List projects")
    p_list.add_argument("--status", choices=[s.value for s in ProjectStatus])
    p_list.add_argument("--sort", choices=["dueDate", "name", "priority"], default="dueDate")

    p_board = sub.add_parser("board", help="Show a project's kanban board")
    p_board.add_argument("project_id")

    p_move = sub.add_parser("move", help="Move a task to another stage")
    p_move.add_argument("project_id")
    p_move.add_argument("task_id")
    p_move.add_argument("status", choices=[s.value for s in TaskStatus])

    sub.add_parser("stats", help="Show project statistics")
    sub.add_parser("sample-csv", help="Print a CSV import template")
    return parser


def run(argv: list[str] | None = None) -> None:
    """CLI entry point for the portal."""
    args = build_parser().parse_args(argv)

    if args.command == "sample-csv":
        sys.stdout.write(SAMPLE_CSV)
        return

    settings = get_settings()
    config_path = args.config or settings.config_path
    try:
        if args.config is None and not Path(config_path).exists():
            config = PortalConfig()
            if settings.db_path:
                config.store.db_path = settings.db_path
        else:
            config = load_config(config_path, settings)
    except FileNotFoundError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    except Exception as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        sys.exit(1)

    configure_logging(config.logging.level, config.logging.format)
    log.info("portal.config_loaded", config_path=config_path, db_path=config.store.db_path)

    try:
        status = asyncio.run(execute(config, args))
    except (CommandError, CSVImportError, DocumentNotFound, ValidationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        status = 130
    if status:
        sys.exit(status)


if __name__ == "__main__":
    run()
