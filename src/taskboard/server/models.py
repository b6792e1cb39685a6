"""Pydantic models for API requests and responses."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class TaskInfo(BaseModel):
    """A task as returned by the API."""

    id: int
    title: str
    description: str
    persona: str
    group: int
    completed: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    completed_at: Optional[str] = None


class CreateTaskRequest(BaseModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    persona: str = Field(min_length=1)
    group: int


class UpdateTaskRequest(BaseModel):
    """Body of ``PUT``: either ``{id, completed: true}`` or an edit of the fields."""

    id: int
    completed: Optional[bool] = None
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = Field(default=None, min_length=1)
    persona: Optional[str] = Field(default=None, min_length=1)
    group: Optional[int] = None

    def edits(self) -> dict[str, object]:
        return {
            k: v
            for k, v in self.model_dump(include={"title", "description", "persona", "group"}).items()
            if v is not None
        }


class DeleteResponse(BaseModel):
    status: str = "deleted"
    id: int


class ServiceInfo(BaseModel):
    name: str
    version: str
    status: str
