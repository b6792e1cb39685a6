"""Task model for the board.

A task carries a title, description, persona and group tag plus a one-way
``completed`` flag.  The flag alone decides which partition (active or
completed) the task belongs to; the ``all`` view is the union of both.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class TaskView(str, Enum):
    """Filtered collection rendered as a board column."""

    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"

    def matches(self, task: "Task") -> bool:
        if self is TaskView.ACTIVE:
            return not task.completed
        if self is TaskView.COMPLETED:
            return task.completed
        return True


# Fields a client may edit through the update operation.
EDITABLE_FIELDS = ("title", "description", "persona", "group")


# ---------------------------------------------------------------------------
# Helper
# ---------------------------------------------------------------------------

def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Task dataclass
# ---------------------------------------------------------------------------

@dataclass
class Task:
    """A unit of work on the board.

    ``id`` stays ``None`` until the store assigns one; after that it never
    changes.
    """

    id: Optional[int] = None
    title: str = ""
    description: str = ""
    persona: str = ""
    group: int = 0
    completed: bool = False

    created_at: str = field(default_factory=_now_iso)
    updated_at: str = field(default_factory=_now_iso)
    completed_at: Optional[str] = None

    @classmethod
    def validate_dict(cls, data: dict[str, Any], *, partial: bool = False) -> list[str]:
        """Check the editable fields of *data*.

        Returns a list of error strings (empty = valid).  With ``partial`` set,
        only the fields present in *data* are checked.
        """
        if not isinstance(data, dict):
            return ["Expected a dict"]
        errors: list[str] = []
        for name in ("title", "description", "persona"):
            if partial and name not in data:
                continue
            value = data.get(name)
            if not isinstance(value, str) or not value.strip():
                errors.append(f"'{name}' is required and must be non-empty")
        if not partial or "group" in data:
            group = data.get("group")
            if isinstance(group, bool) or not isinstance(group, int):
                errors.append("'group' is required and must be an integer")
        return errors

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dict for YAML/JSON persistence."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Task":
        """Deserialize from a plain dict, coercing field types gracefully."""
        d = dict(data)
        raw_id = d.get("id")
        try:
            group = int(d.get("group", 0) or 0)
        except (TypeError, ValueError):
            group = 0
        return cls(
            id=int(raw_id) if raw_id is not None else None,
            title=str(d.get("title", "") or ""),
            description=str(d.get("description", "") or ""),
            persona=str(d.get("persona", "") or ""),
            group=group,
            completed=bool(d.get("completed", False)),
            created_at=str(d.get("created_at") or _now_iso()),
            updated_at=str(d.get("updated_at") or _now_iso()),
            completed_at=d.get("completed_at"),
        )

    # ------------------------------------------------------------------
    # Lifecycle helpers
    # ------------------------------------------------------------------

    def touch(self) -> None:
        """Bump ``updated_at`` to now."""
        self.updated_at = _now_iso()

    def complete(self) -> bool:
        """Mark the task completed.  Returns False if it already was."""
        if self.completed:
            return False
        self.completed = True
        self.completed_at = _now_iso()
        self.touch()
        return True

    def apply_changes(self, changes: dict[str, Any]) -> list[str]:
        """Apply edits to the editable fields, returning the names that changed."""
        changed: list[str] = []
        for key in EDITABLE_FIELDS:
            if key in changes and getattr(self, key) != changes[key]:
                setattr(self, key, changes[key])
                changed.append(key)
        if changed:
            self.touch()
        return changed

    @property
    def view(self) -> TaskView:
        """The partition this task belongs to."""
        return TaskView.COMPLETED if self.completed else TaskView.ACTIVE
