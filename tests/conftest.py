from __future__ import annotations

from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from taskboard.client import BoardController, TaskApiClient
from taskboard.server.api import create_app


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    d = tmp_path / "board"
    d.mkdir()
    return d


@pytest.fixture
def app(project_dir: Path):
    return create_app(project_dir=project_dir, enable_cors=False)


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def api(client: AsyncClient) -> TaskApiClient:
    return TaskApiClient(http_client=client)


@pytest.fixture
def controller(api: TaskApiClient) -> BoardController:
    return BoardController(api)
