"""Board state and its transitions.

The controller never mutates state in place: each function here takes the
current :class:`BoardState` plus an event payload and returns a new state.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Optional

from ..task_engine.model import Task, TaskView


@dataclass(frozen=True)
class TaskForm:
    """Fields of the create/edit form."""

    title: str = ""
    description: str = ""
    persona: str = ""
    group: int = 0

    def missing_fields(self) -> list[str]:
        missing = [name for name in ("title", "description", "persona") if not getattr(self, name).strip()]
        if isinstance(self.group, bool) or not isinstance(self.group, int):
            missing.append("group")
        return missing

    def as_fields(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "persona": self.persona,
            "group": self.group,
        }


@dataclass(frozen=True)
class BoardState:
    views: dict[TaskView, tuple[Task, ...]] = field(
        default_factory=lambda: {view: () for view in TaskView}
    )
    form: TaskForm = field(default_factory=TaskForm)
    editing: Optional[Task] = None
    modal_open: bool = False
    error: Optional[str] = None

    def view(self, view: TaskView | str) -> tuple[Task, ...]:
        return self.views[TaskView(view)]

    def ids(self, view: TaskView | str) -> list[int]:
        return [t.id for t in self.view(view)]


def views_loaded(state: BoardState, view: TaskView, tasks: Iterable[Task]) -> BoardState:
    """Overwrite one view with a fresh listing."""
    views = dict(state.views)
    views[view] = tuple(tasks)
    return replace(state, views=views)


def task_removed(
    state: BoardState,
    task_id: int,
    views: Iterable[TaskView] = tuple(TaskView),
) -> BoardState:
    updated = dict(state.views)
    for view in views:
        updated[view] = tuple(t for t in updated[view] if t.id != task_id)
    return replace(state, views=updated)


def task_marked_completed(state: BoardState, task_id: int) -> BoardState:
    """Flip ``completed`` on the task's entry in the ``all`` view."""
    updated = dict(state.views)
    updated[TaskView.ALL] = tuple(
        replace(t, completed=True) if t.id == task_id else t for t in updated[TaskView.ALL]
    )
    return replace(state, views=updated)


def form_changed(state: BoardState, **fields: Any) -> BoardState:
    unknown = set(fields) - set(TaskForm.__dataclass_fields__)
    if unknown:
        raise ValueError(f"Unknown form fields: {sorted(unknown)}")
    return replace(state, form=replace(state.form, **fields))


def form_cleared(state: BoardState) -> BoardState:
    """Reset the form and drop the edit target."""
    return replace(state, form=TaskForm(), editing=None)


def edit_started(state: BoardState, task: Task) -> BoardState:
    form = TaskForm(
        title=task.title,
        description=task.description,
        persona=task.persona,
        group=task.group,
    )
    return replace(state, form=form, editing=task, modal_open=True)


def modal_toggled(state: BoardState, is_open: bool) -> BoardState:
    return replace(state, modal_open=is_open)


def failed(state: BoardState, message: str) -> BoardState:
    return replace(state, error=message)


def error_cleared(state: BoardState) -> BoardState:
    if state.error is None:
        return state
    return replace(state, error=None)
