"""Provide the public `taskboard` package exports."""

from __future__ import annotations

from .task_engine.engine import TaskEngine
from .task_engine.model import Task, TaskView

__all__ = ["Task", "TaskEngine", "TaskView"]

__version__ = "1.0.0"
