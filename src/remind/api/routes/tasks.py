"""Tasks API."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from remind.api.dependencies import get_current_user, get_engine
from remind.api.models import SuccessResponse, TaskListResponse, TaskUpdateRequest
from remind.exceptions import NotFoundError
from remind.models import Task, TaskCreate, User
from remind.repository import tasks as task_repo

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


@router.get("", response_model=TaskListResponse)
def list_tasks(
    completed: bool | None = None,
    user: User = Depends(get_current_user),
    engine: Any = Depends(get_engine),
) -> TaskListResponse:
    return TaskListResponse(tasks=task_repo.list_tasks(engine=engine, user_id=user.id, completed=completed))


@router.post("", response_model=Task, status_code=201)
def create_task(
    body: TaskCreate,
    user: User = Depends(get_current_user),
    engine: Any = Depends(get_engine),
) -> Task:
    return task_repo.create_task(engine=engine, user_id=user.id, data=body)


@router.put("/{task_id}", response_model=Task)
def update_task(
    task_id: str,
    body: TaskUpdateRequest,
    user: User = Depends(get_current_user),
    engine: Any = Depends(get_engine),
) -> Task:
    task = task_repo.update_task(
        engine=engine,
        user_id=user.id,
        task_id=task_id,
        title=body.title,
        priority=body.priority,
        completed=body.completed,
    )
    if task is None:
        raise NotFoundError("Task not found")
    return task


@router.delete("/{task_id}", response_model=SuccessResponse)
def delete_task(
    task_id: str,
    user: User = Depends(get_current_user),
    engine: Any = Depends(get_engine),
) -> SuccessResponse:
    if not task_repo.delete_task(engine=engine, user_id=user.id, task_id=task_id):
        raise NotFoundError("Task not found")
    return SuccessResponse()
