"""Render the board state as three terminal columns."""

from __future__ import annotations

import io

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..task_engine.model import Task, TaskView
from .state import BoardState

COLUMN_TITLES = {
    TaskView.ALL: "All Tasks",
    TaskView.ACTIVE: "Active Tasks",
    TaskView.COMPLETED: "Completed Tasks",
}

# Actions offered on each card of a column.
COLUMN_ACTIONS = {
    TaskView.ALL: ("edit", "delete"),
    TaskView.ACTIVE: ("complete",),
    TaskView.COMPLETED: ("delete",),
}


def _card(task: Task, view: TaskView) -> str:
    actions = " ".join(f"[{a}]" for a in COLUMN_ACTIONS[view])
    return (
        f"[bold]#{task.id} {escape(task.title)}[/bold]\n"
        f"{escape(task.description)}\n"
        f"[italic]{escape(task.persona)}[/italic]  [dim]group {task.group}[/dim]\n"
        f"[dim]{escape(actions)}[/dim]"
    )


def render_board(state: BoardState, width: int = 120) -> str:
    """Format the board as plain text.

    Args:
        state: Board state to render.
        width: Console width in characters.

    Returns:
        The rendered board.
    """
    console = Console(file=io.StringIO(), record=True, width=width, color_system=None)
    console.print("[bold]Taskboard System[/bold]", justify="center")

    if state.error:
        console.print(f"[bold red]Error:[/bold red] {escape(state.error)}")

    table = Table(show_lines=True, expand=True)
    for view in TaskView:
        table.add_column(f"{COLUMN_TITLES[view]} ({len(state.view(view))})", ratio=1)

    columns = [state.view(view) for view in TaskView]
    depth = max((len(c) for c in columns), default=0)
    for row in range(depth):
        table.add_row(*(
            _card(col[row], view) if row < len(col) else ""
            for view, col in zip(TaskView, columns)
        ))
    console.print(table)

    if state.modal_open:
        heading = f"Update Task #{state.editing.id}" if state.editing else "Create Task"
        form = state.form
        console.print(f"\n[bold]{heading}[/bold]")
        console.print(f"  Title: {escape(form.title)}")
        console.print(f"  Description: {escape(form.description)}")
        console.print(f"  Persona: {escape(form.persona)}")
        console.print(f"  Group: {form.group}")

    return console.export_text()
