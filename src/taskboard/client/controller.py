"""Board controller: drives the task API and keeps the three views in sync.

Each operation issues its request, and only on success applies the matching
state transitions (local patching or re-fetching the affected views).  A
failed request leaves the views untouched and records an inline error.
"""

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import Any, Iterable, Optional

from loguru import logger

from ..task_engine.model import Task, TaskView
from . import state as st
from .api_client import ApiError, TaskApiClient


class BoardController:
    """Own the board state and mutate it only in response to API results."""

    def __init__(self, client: TaskApiClient, initial: Optional[st.BoardState] = None) -> None:
        self.client = client
        self.state = initial or st.BoardState()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _fail(self, action: str, exc: Exception) -> bool:
        logger.warning("{} failed: {}", action, exc)
        self.state = st.failed(self.state, f"{action} failed: {exc}")
        return False

    async def _fetch_view(self, view: TaskView) -> bool:
        try:
            tasks = await self.client.list_tasks(view)
        except ApiError as e:
            return self._fail(f"Loading {view.value} tasks", e)
        self.state = st.views_loaded(self.state, view, tasks)
        return True

    async def _refresh(self, views: Iterable[TaskView]) -> bool:
        results = await asyncio.gather(*(self._fetch_view(v) for v in views))
        return all(results)

    def _finish_form(self) -> None:
        self.state = st.modal_toggled(st.form_cleared(self.state), False)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load_views(self) -> bool:
        """Fetch the three views independently; each overwrites only itself."""
        return await self._refresh(TaskView)

    async def load_view(self, view: TaskView) -> bool:
        return await self._fetch_view(view)

    # ------------------------------------------------------------------
    # Form and modal
    # ------------------------------------------------------------------

    def open_modal(self) -> None:
        self.state = st.modal_toggled(self.state, True)

    def close_modal(self) -> None:
        """Hide the modal; the form keeps what was typed."""
        self.state = st.modal_toggled(self.state, False)

    def set_form(self, **fields: Any) -> None:
        self.state = st.form_changed(self.state, **fields)

    def start_edit(self, task: Task) -> None:
        """Load *task* into the form as the edit target and open the modal."""
        self.state = st.edit_started(self.state, task)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create_task(
        self,
        title: Optional[str] = None,
        description: Optional[str] = None,
        persona: Optional[str] = None,
        group: Optional[int] = None,
    ) -> Optional[Task]:
        """Create a task from the form; arguments given here overwrite form fields first."""
        overrides = {
            k: v
            for k, v in {"title": title, "description": description, "persona": persona, "group": group}.items()
            if v is not None
        }
        if overrides:
            self.set_form(**overrides)

        missing = self.state.form.missing_fields()
        if missing:
            self.state = st.failed(self.state, f"Missing required fields: {', '.join(missing)}")
            return None

        try:
            task = await self.client.create_task(**self.state.form.as_fields())
        except ApiError as e:
            self._fail("Creating task", e)
            return None

        logger.info("Created task {}", task.id)
        self.state = st.error_cleared(self.state)
        self._finish_form()
        # a new task is active, so only "all" and "active" gain a member
        await self._refresh((TaskView.ALL, TaskView.ACTIVE))
        return task

    async def update_task(self, **fields: Any) -> Optional[Task]:
        """Submit the full field set of the current edit target."""
        target = self.state.editing
        if target is None or target.id is None:
            self.state = st.failed(self.state, "No task selected for editing")
            return None
        if fields:
            self.set_form(**fields)

        missing = self.state.form.missing_fields()
        if missing:
            self.state = st.failed(self.state, f"Missing required fields: {', '.join(missing)}")
            return None

        try:
            task = await self.client.update_task(target.id, **self.state.form.as_fields())
        except ApiError as e:
            self._fail(f"Updating task {target.id}", e)
            return None

        if task is None:
            task = replace(target, **self.state.form.as_fields())
        logger.info("Updated task {}", target.id)
        self.state = st.error_cleared(self.state)
        self._finish_form()
        await self._refresh((TaskView.ALL, task.view))
        return task

    async def complete_task(self, task_id: int) -> bool:
        try:
            await self.client.complete_task(task_id)
        except ApiError as e:
            return self._fail(f"Completing task {task_id}", e)

        logger.info("Completed task {}", task_id)
        self.state = st.task_marked_completed(st.error_cleared(self.state), task_id)
        await self._refresh((TaskView.ACTIVE, TaskView.COMPLETED))
        return True

    async def delete_task(self, task_id: int) -> bool:
        try:
            await self.client.delete_task(task_id)
        except ApiError as e:
            return self._fail(f"Deleting task {task_id}", e)

        logger.info("Deleted task {}", task_id)
        self.state = st.task_removed(st.error_cleared(self.state), task_id)
        return True
