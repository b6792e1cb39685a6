"""FastAPI web server for the task board."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from .. import __version__
from ..constants import STATE_DIR_NAME
from ..task_engine.engine import TaskEngine
from .models import ServiceInfo
from .task_api import create_task_router


def create_app(
    project_dir: Optional[Path] = None,
    enable_cors: bool = True,
) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        project_dir: Directory whose `.taskboard/` folder holds the task store.
            Defaults to the current working directory.
        enable_cors: Whether to enable CORS.

    Returns:
        Configured FastAPI app.
    """
    app = FastAPI(
        title="Taskboard",
        description="Task board API: create, list, update, complete and delete tasks",
        version=__version__,
    )

    if enable_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    state_dir = (project_dir or Path.cwd()) / STATE_DIR_NAME
    app.state.engine = TaskEngine(state_dir)
    logger.info("Serving tasks from {}", state_dir)

    def _get_engine() -> TaskEngine:
        return app.state.engine

    @app.get("/", response_model=ServiceInfo)
    async def root() -> ServiceInfo:
        """Root endpoint."""
        return ServiceInfo(name="Taskboard", version=__version__, status="running")

    app.include_router(create_task_router(_get_engine))
    return app
