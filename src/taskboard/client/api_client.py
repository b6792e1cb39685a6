"""Async HTTP client for the task API.

Every failure, whether the transport broke or the server answered with a
non-2xx status, surfaces as a single :class:`ApiError`.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx
from loguru import logger

from ..constants import API_PATH, DEFAULT_BASE_URL, DEFAULT_CLIENT_TIMEOUT
from ..task_engine.model import Task, TaskView


class ApiError(Exception):
    """A request to the task API did not succeed."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TaskApiClient:
    """Thin wrapper around ``httpx.AsyncClient`` for the task endpoint.

    Pass ``http_client`` to reuse an existing client (tests route it to the
    app in-process); otherwise one is created for ``base_url`` and closed by
    :meth:`aclose`.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_CLIENT_TIMEOUT,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self) -> "TaskApiClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def _request(self, method: str, **kwargs: Any) -> httpx.Response:
        try:
            resp = await self._http.request(method, API_PATH, **kwargs)
        except httpx.HTTPError as e:
            logger.debug("{} {} failed: {}", method, API_PATH, e)
            raise ApiError(f"{method} {API_PATH} failed: {e.__class__.__name__}: {e}") from e
        if not resp.is_success:
            detail = _error_detail(resp)
            raise ApiError(f"{method} {API_PATH} returned {resp.status_code}: {detail}", resp.status_code)
        return resp

    async def list_tasks(self, view: TaskView | str = TaskView.ALL) -> list[Task]:
        view = TaskView(view)
        resp = await self._request("GET", params={"type": view.value})
        return [Task.from_dict(d) for d in _json(resp, list)]

    async def create_task(self, title: str, description: str, persona: str, group: int) -> Task:
        body = {"title": title, "description": description, "persona": persona, "group": group}
        resp = await self._request("POST", json=body)
        return Task.from_dict(_json(resp, dict))

    async def update_task(
        self,
        task_id: int,
        title: str,
        description: str,
        persona: str,
        group: int,
    ) -> Optional[Task]:
        """Submit edits; returns ``None`` when the server answers 2xx without a body."""
        body = {"id": task_id, "title": title, "description": description, "persona": persona, "group": group}
        resp = await self._request("PUT", json=body)
        if not resp.content:
            return None
        return Task.from_dict(_json(resp, dict))

    async def complete_task(self, task_id: int) -> None:
        await self._request("PUT", json={"id": task_id, "completed": True})

    async def delete_task(self, task_id: int) -> None:
        await self._request("DELETE", params={"id": task_id})


def _json(resp: httpx.Response, expected: type) -> Any:
    try:
        data = resp.json()
    except ValueError as e:
        raise ApiError(f"Malformed response body: {e}", resp.status_code) from e
    if not isinstance(data, expected):
        raise ApiError(f"Expected JSON {expected.__name__}, got {type(data).__name__}", resp.status_code)
    return data


def _error_detail(resp: httpx.Response) -> str:
    try:
        payload = resp.json()
    except ValueError:
        return resp.text[:200]
    if isinstance(payload, dict) and "detail" in payload:
        return str(payload["detail"])
    return str(payload)[:200]
