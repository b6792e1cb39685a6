"""Task engine — high-level CRUD and view operations.

This is the primary entry-point for all task manipulation.  It wraps
:class:`TaskStore` with business rules (field validation, one-way completion,
view filtering) and records every mutation in an append-only event log.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from ..constants import ARTIFACTS_DIR, EVENTS_FILE
from ..io_utils import _append_jsonl, _read_jsonl_tail
from .model import EDITABLE_FIELDS, Task, TaskView
from .store import TaskStore

logger = logging.getLogger(__name__)


class TaskEngine:
    """Manage the full lifecycle of tasks on the board.

    Parameters
    ----------
    state_dir:
        Path to the ``.taskboard/`` directory.
    """

    def __init__(self, state_dir: Path) -> None:
        self.store = TaskStore(state_dir)
        self._state_dir = state_dir
        self._events_path = state_dir / ARTIFACTS_DIR / EVENTS_FILE

    def _emit_event(self, event_type: str, task: Task, **details: Any) -> None:
        """Append a task event to the log."""
        payload: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "type": event_type,
            "task_id": task.id,
            "completed": task.completed,
        }
        if details:
            payload["details"] = details
        try:
            _append_jsonl(self._events_path, payload)
        except OSError:
            logger.exception("Failed to append task event %s for %s", event_type, task.id)

    def get_recent_events(self, limit: int = 100) -> list[dict[str, Any]]:
        return _read_jsonl_tail(self._events_path, limit)

    def get_task_events(self, task_id: int, limit: int = 100) -> list[dict[str, Any]]:
        events = self.get_recent_events(limit=max(limit * 5, limit))
        filtered = [e for e in events if e.get("task_id") == task_id]
        return filtered[-limit:]

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def create_task(
        self,
        title: str,
        description: str,
        persona: str,
        group: int,
    ) -> Task:
        """Create and persist a new task, returning it with its assigned id.

        Raises ``ValueError`` when any of the four fields is missing or empty.
        """
        fields = {"title": title, "description": description, "persona": persona, "group": group}
        errors = Task.validate_dict(fields)
        if errors:
            raise ValueError("; ".join(errors))

        task = Task(title=title, description=description, persona=persona, group=group)
        with self.store.transaction() as tx:
            tx.add(task)
        self._emit_event("task.created", task, group=group)

        logger.info("Created task %s: %s", task.id, title)
        return task

    def get_task(self, task_id: int) -> Optional[Task]:
        return self.store.get_one(task_id)

    def list_tasks(self, view: TaskView | str = TaskView.ALL) -> list[Task]:
        """Return the tasks in *view*, in creation order."""
        view = TaskView(view)
        with self.store.transaction() as tx:
            return tx.find(view)

    def update_task(self, task_id: int, changes: dict[str, Any]) -> Optional[Task]:
        """Apply edits to a task's editable fields.

        Only the submitted fields change; ``id`` and ``completed`` are never
        touched here.  Returns the updated task or ``None`` if it does not exist.
        """
        edits = {k: v for k, v in changes.items() if k in EDITABLE_FIELDS}
        if not edits:
            raise ValueError(f"No editable fields given; expected any of {list(EDITABLE_FIELDS)}")
        errors = Task.validate_dict(edits, partial=True)
        if errors:
            raise ValueError("; ".join(errors))

        with self.store.transaction() as tx:
            task = tx.get(task_id)
            if task is None:
                return None
            changed = task.apply_changes(edits)
            if changed:
                tx.dirty = True

        if changed:
            self._emit_event("task.updated", task, fields=changed)
        return task

    def complete_task(self, task_id: int) -> Optional[Task]:
        """Mark a task completed.  Completing an already completed task is a no-op."""
        with self.store.transaction() as tx:
            task = tx.get(task_id)
            if task is None:
                return None
            newly_completed = task.complete()
            if newly_completed:
                tx.dirty = True

        if newly_completed:
            self._emit_event("task.completed", task)
            logger.info("Completed task %s", task_id)
        return task

    def delete_task(self, task_id: int) -> bool:
        """Remove a task from the store.  Returns False if it did not exist."""
        with self.store.transaction() as tx:
            task = tx.get(task_id)
            if task is None:
                return False
            tx.remove(task_id)
        self._emit_event("task.deleted", task)

        logger.info("Deleted task %s", task_id)
        return True

    # ------------------------------------------------------------------
    # Board helpers
    # ------------------------------------------------------------------

    def get_views(self) -> dict[str, list[Task]]:
        """Return every view from a single consistent snapshot."""
        with self.store.transaction() as tx:
            return {view.value: tx.find(view) for view in TaskView}
