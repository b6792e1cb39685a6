"""Provide the `taskboard` command-line entrypoint.

`server` runs the task API; `board` and the `task` subcommands talk to a
running server through the board controller.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

from loguru import logger

from .client import BoardController, TaskApiClient
from .client.render import render_board
from .config import get_client_config, get_log_level_config, get_server_config, load_board_config
from .constants import STATE_DIR_NAME
from .task_engine.engine import TaskEngine
from .task_engine.model import TaskView


def _configure_logging(level: str = "INFO") -> None:
    """Configure loguru logger with the specified level."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{module}</cyan>:<cyan>{line}</cyan>\n"
            "{message}"
        ),
    )


def _resolve_project_dir(project_dir: Optional[str]) -> Path:
    return Path(project_dir).expanduser().resolve() if project_dir else Path.cwd().resolve()


def _load_config(args: argparse.Namespace) -> dict[str, Any]:
    config, err = load_board_config(_resolve_project_dir(args.project_dir))
    if err:
        logger.warning("Ignoring invalid config: {}", err)
    return config


def _dump(payload: Any) -> None:
    sys.stdout.write(json.dumps(payload, indent=2) + "\n")


def _with_controller(args: argparse.Namespace, action: Callable[[BoardController], Awaitable[int]]) -> int:
    client_cfg = get_client_config(args.config)
    base_url = args.base_url or client_cfg["base_url"]

    async def _run() -> int:
        async with TaskApiClient(base_url=base_url, timeout=client_cfg["timeout"]) as client:
            return await action(BoardController(client))

    return asyncio.run(_run())


def _report(controller: BoardController) -> int:
    if controller.state.error:
        sys.stderr.write(controller.state.error + "\n")
        return 1
    return 0


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def _server(args: argparse.Namespace) -> int:
    try:
        import uvicorn
    except ImportError:
        sys.stderr.write("Install uvicorn to run the server: pip install uvicorn\n")
        return 1
    from .server import create_app

    server_cfg = get_server_config(args.config)
    app = create_app(
        project_dir=_resolve_project_dir(args.project_dir),
        enable_cors=server_cfg["cors"] and not args.no_cors,
    )
    uvicorn.run(app, host=args.host or server_cfg["host"], port=args.port or server_cfg["port"])
    return 0


def _board(args: argparse.Namespace) -> int:
    async def action(controller: BoardController) -> int:
        await controller.load_views()
        sys.stdout.write(render_board(controller.state, width=args.width))
        return _report(controller)

    return _with_controller(args, action)


def _task_list(args: argparse.Namespace) -> int:
    view = TaskView(args.type)

    async def action(controller: BoardController) -> int:
        await controller.load_view(view)
        if controller.state.error:
            return _report(controller)
        _dump({"tasks": [t.to_dict() for t in controller.state.view(view)]})
        return 0

    return _with_controller(args, action)


def _task_create(args: argparse.Namespace) -> int:
    async def action(controller: BoardController) -> int:
        task = await controller.create_task(args.title, args.description, args.persona, args.group)
        if task is None:
            return _report(controller)
        _dump({"task": task.to_dict()})
        return 0

    return _with_controller(args, action)


def _task_update(args: argparse.Namespace) -> int:
    async def action(controller: BoardController) -> int:
        if not await controller.load_view(TaskView.ALL):
            return _report(controller)
        target = next((t for t in controller.state.view(TaskView.ALL) if t.id == args.task_id), None)
        if target is None:
            sys.stderr.write(f"Task {args.task_id} not found\n")
            return 1
        controller.start_edit(target)
        edits = {
            k: v
            for k, v in {
                "title": args.title,
                "description": args.description,
                "persona": args.persona,
                "group": args.group,
            }.items()
            if v is not None
        }
        task = await controller.update_task(**edits)
        if task is None:
            return _report(controller)
        _dump({"task": task.to_dict()})
        return 0

    return _with_controller(args, action)


def _task_complete(args: argparse.Namespace) -> int:
    async def action(controller: BoardController) -> int:
        if not await controller.complete_task(args.task_id):
            return _report(controller)
        if controller.state.error:
            # completed on the server; only the follow-up view refresh failed
            sys.stderr.write(f"warning: {controller.state.error}\n")
        _dump({"completed": args.task_id})
        return 0

    return _with_controller(args, action)


def _task_delete(args: argparse.Namespace) -> int:
    async def action(controller: BoardController) -> int:
        if not await controller.delete_task(args.task_id):
            return _report(controller)
        _dump({"deleted": args.task_id})
        return 0

    return _with_controller(args, action)


def _task_events(args: argparse.Namespace) -> int:
    engine = TaskEngine(_resolve_project_dir(args.project_dir) / STATE_DIR_NAME)
    if args.task_id is not None:
        events = engine.get_task_events(args.task_id, limit=args.limit)
    else:
        events = engine.get_recent_events(limit=args.limit)
    _dump({"events": events})
    return 0


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Taskboard: task API server and board client")
    parser.add_argument("--project-dir", default=None, help="Directory holding .taskboard/ (default: current working directory)")
    parser.add_argument("--base-url", default=None, help="Task API base URL (default: from config or http://127.0.0.1:8000)")
    parser.add_argument("--log-level", default=None, help="Log level (default: from config or INFO)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    server = subparsers.add_parser("server", help="Start the task API server")
    server.add_argument("--host", default=None)
    server.add_argument("--port", default=None, type=int)
    server.add_argument("--no-cors", action="store_true")
    server.set_defaults(func=_server)

    board = subparsers.add_parser("board", help="Load and render the three board columns")
    board.add_argument("--width", default=120, type=int)
    board.set_defaults(func=_board)

    task = subparsers.add_parser("task", help="Manage tasks")
    task_sub = task.add_subparsers(dest="task_cmd", required=True)

    tlist = task_sub.add_parser("list", help="List tasks in one view")
    tlist.add_argument("--type", default=TaskView.ALL.value, choices=[v.value for v in TaskView])
    tlist.set_defaults(func=_task_list)

    tcreate = task_sub.add_parser("create", help="Create a task")
    tcreate.add_argument("title")
    tcreate.add_argument("--description", required=True)
    tcreate.add_argument("--persona", required=True)
    tcreate.add_argument("--group", required=True, type=int)
    tcreate.set_defaults(func=_task_create)

    tupdate = task_sub.add_parser("update", help="Edit a task's fields")
    tupdate.add_argument("task_id", type=int)
    tupdate.add_argument("--title", default=None)
    tupdate.add_argument("--description", default=None)
    tupdate.add_argument("--persona", default=None)
    tupdate.add_argument("--group", default=None, type=int)
    tupdate.set_defaults(func=_task_update)

    tcomplete = task_sub.add_parser("complete", help="Mark a task completed")
    tcomplete.add_argument("task_id", type=int)
    tcomplete.set_defaults(func=_task_complete)

    tdelete = task_sub.add_parser("delete", help="Delete a task")
    tdelete.add_argument("task_id", type=int)
    tdelete.set_defaults(func=_task_delete)

    tevents = task_sub.add_parser("events", help="Show the local task event log")
    tevents.add_argument("--task-id", default=None, type=int)
    tevents.add_argument("--limit", default=50, type=int)
    tevents.set_defaults(func=_task_events)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    args.config = _load_config(args)
    _configure_logging(args.log_level or get_log_level_config(args.config))
    handler = getattr(args, "func", None)
    if handler is None:
        parser.print_help()
        return 1
    return int(handler(args) or 0)


if __name__ == "__main__":
    raise SystemExit(main())
