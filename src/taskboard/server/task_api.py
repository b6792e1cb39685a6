"""Task API endpoints for the board.

This module provides a FastAPI router exposing the single task resource:
list by view, create, update or complete, and delete.  It is mounted at
``/api/hello`` by the main ``create_app`` factory.
"""

from __future__ import annotations

from typing import Callable

from fastapi import APIRouter, HTTPException, Query
from loguru import logger

from ..constants import API_PATH
from ..task_engine.engine import TaskEngine
from ..task_engine.model import Task, TaskView
from .models import CreateTaskRequest, DeleteResponse, TaskInfo, UpdateTaskRequest


def _task_info(task: Task) -> TaskInfo:
    return TaskInfo(**task.to_dict())


def create_task_router(get_engine: Callable[[], TaskEngine]) -> APIRouter:
    """Create the task API router.

    Parameters
    ----------
    get_engine:
        A callable returning the :class:`TaskEngine` that serves the request.
    """
    router = APIRouter(prefix=API_PATH, tags=["tasks"])

    @router.get("", response_model=list[TaskInfo])
    async def list_tasks(
        view: TaskView = Query(TaskView.ALL, alias="type"),
    ) -> list[TaskInfo]:
        engine = get_engine()
        return [_task_info(t) for t in engine.list_tasks(view)]

    @router.post("", response_model=TaskInfo, status_code=201)
    async def create_task(body: CreateTaskRequest) -> TaskInfo:
        engine = get_engine()
        try:
            task = engine.create_task(**body.model_dump())
        except ValueError as e:
            logger.warning("Rejected task creation: {}", e)
            raise HTTPException(status_code=400, detail=str(e))
        return _task_info(task)

    @router.put("", response_model=TaskInfo)
    async def update_task(body: UpdateTaskRequest) -> TaskInfo:
        engine = get_engine()
        if body.completed is False:
            raise HTTPException(status_code=400, detail="Completed tasks cannot be reopened")

        edits = body.edits()
        if not edits and not body.completed:
            raise HTTPException(
                status_code=400,
                detail="Nothing to update; send 'completed: true' or any of title, description, persona, group",
            )

        if edits:
            try:
                task = engine.update_task(body.id, edits)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
        else:
            task = engine.get_task(body.id)
        if task is not None and body.completed:
            task = engine.complete_task(body.id)
        if task is None:
            logger.warning("Update for unknown task {}", body.id)
            raise HTTPException(status_code=404, detail=f"Task {body.id} not found")
        return _task_info(task)

    @router.delete("", response_model=DeleteResponse)
    async def delete_task(task_id: int = Query(..., alias="id")) -> DeleteResponse:
        engine = get_engine()
        if not engine.delete_task(task_id):
            logger.warning("Delete for unknown task {}", task_id)
            raise HTTPException(status_code=404, detail=f"Task {task_id} not found")
        return DeleteResponse(id=task_id)

    return router
