"""File-based task store with inter-process locking.

Stores tasks in a single YAML file (``tasks.yaml``) inside the project's
``.taskboard/`` directory.  All reads and writes go through
:meth:`TaskStore.transaction`, which holds an exclusive file lock for the
whole load-mutate-save cycle.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional

from filelock import FileLock

from ..constants import LOCK_TIMEOUT, STORE_FILE, STORE_LOCK_FILE
from .model import Task, TaskView

try:
    import yaml
    from yaml import CSafeDumper as Dumper
    from yaml import CSafeLoader as Loader
except ImportError:
    import yaml  # type: ignore[no-redef]
    Dumper = getattr(yaml, "SafeDumper")  # type: ignore[assignment,misc]
    Loader = getattr(yaml, "SafeLoader")  # type: ignore[assignment,misc]

STORE_VERSION = 1


# ---------------------------------------------------------------------------
# Low-level I/O
# ---------------------------------------------------------------------------

def _load_raw(path: Path) -> tuple[list[dict[str, Any]], int]:
    """Load ``(tasks, next_id)`` from *path*, returning ``([], 1)`` if missing."""
    if not path.exists():
        return [], 1
    text = path.read_text(encoding="utf-8")
    data = yaml.load(text, Loader=Loader)
    if not isinstance(data, dict):
        return [], 1
    tasks = data.get("tasks")
    tasks = [t for t in tasks if isinstance(t, dict)] if isinstance(tasks, list) else []
    highest = max((int(t.get("id") or 0) for t in tasks), default=0)
    try:
        next_id = int(data.get("next_id") or 1)
    except (TypeError, ValueError):
        next_id = 1
    return tasks, max(next_id, highest + 1)


def _save_raw(path: Path, tasks: list[dict[str, Any]], next_id: int) -> None:
    """Atomically write *tasks* to *path* (write-tmp-then-rename)."""
    payload = {"version": STORE_VERSION, "next_id": next_id, "tasks": tasks}
    parent = path.parent
    parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=str(parent), suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            yaml.dump(payload, fh, Dumper=Dumper, default_flow_style=False, sort_keys=False)
        shutil.move(tmp, str(path))
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


# ---------------------------------------------------------------------------
# TaskStore
# ---------------------------------------------------------------------------

class TaskStore:
    """File-backed store for :class:`Task` objects.

    Parameters
    ----------
    state_dir:
        Path to the ``.taskboard/`` directory for the project.
    """

    def __init__(self, state_dir: Path) -> None:
        self._state_dir = state_dir
        self._store_path = state_dir / STORE_FILE
        self._lock_path = state_dir / STORE_LOCK_FILE

    def _lock(self) -> FileLock:
        self._state_dir.mkdir(parents=True, exist_ok=True)
        return FileLock(str(self._lock_path), timeout=LOCK_TIMEOUT)

    # -- public API ---------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator[_TaskTx]:
        """Acquire the lock, load tasks, yield a transaction, and save on exit.

        Usage::

            with store.transaction() as tx:
                task = tx.get(3)
                task.complete()
                tx.dirty = True
        """
        with self._lock():
            raw, next_id = _load_raw(self._store_path)
            tx = _TaskTx([Task.from_dict(d) for d in raw], next_id)
            yield tx
            if tx.dirty:
                _save_raw(self._store_path, [t.to_dict() for t in tx.tasks], tx.next_id)

    def read_snapshot(self) -> list[Task]:
        """Return a read-only snapshot (no lock held after return)."""
        with self._lock():
            raw, _ = _load_raw(self._store_path)
        return [Task.from_dict(d) for d in raw]

    def get_one(self, task_id: int) -> Optional[Task]:
        for t in self.read_snapshot():
            if t.id == task_id:
                return t
        return None


class _TaskTx:
    """In-memory transaction over a list of tasks.

    Mutations are flushed back to disk when the ``transaction``
    context-manager exits.
    """

    def __init__(self, tasks: list[Task], next_id: int) -> None:
        self.tasks = tasks
        self.next_id = next_id
        self.dirty = False
        self._index: dict[int, int] = {t.id: i for i, t in enumerate(tasks) if t.id is not None}

    # -- lookups ------------------------------------------------------------

    def get(self, task_id: int) -> Optional[Task]:
        idx = self._index.get(task_id)
        return self.tasks[idx] if idx is not None else None

    def find(self, view: TaskView = TaskView.ALL) -> list[Task]:
        return [t for t in self.tasks if view.matches(t)]

    # -- mutations ----------------------------------------------------------

    def add(self, task: Task) -> Task:
        """Insert *task*, assigning the next free id when it has none."""
        if task.id is None:
            task.id = self.next_id
        elif task.id in self._index:
            raise ValueError(f"Task {task.id} already exists")
        self.next_id = max(self.next_id, task.id + 1)
        self._index[task.id] = len(self.tasks)
        self.tasks.append(task)
        self.dirty = True
        return task

    def remove(self, task_id: int) -> bool:
        """Physically remove a task from the store."""
        idx = self._index.pop(task_id, None)
        if idx is None:
            return False
        self.tasks.pop(idx)
        self._index = {t.id: i for i, t in enumerate(self.tasks) if t.id is not None}
        self.dirty = True
        return True
