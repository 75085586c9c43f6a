"""
Tasks API endpoints.

Room task CRUD, completion, and the free-text time hint used during extraction.
"""

from uuid import UUID

from fastapi import APIRouter, HTTPException, status

from taskroom.api.deps import TaskRepo
from taskroom.core.exceptions import NotFoundError, PersistenceError
from taskroom.models.task import Task, TaskCompletionUpdate, TaskCreate, TaskTimeHintUpdate

router = APIRouter()


@router.post("/rooms/{room_id}/tasks", response_model=Task, status_code=status.HTTP_201_CREATED)
async def create_task(
    room_id: str,
    task: TaskCreate,
    repo: TaskRepo,
):
    """Create a task in a room."""
    try:
        return await repo.create(room_id, task)
    except PersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        )


@router.get("/rooms/{room_id}/tasks", response_model=list[Task])
async def list_tasks(
    room_id: str,
    repo: TaskRepo,
):
    """List a room's tasks."""
    return await repo.list_by_room(room_id)


@router.patch("/tasks/{task_id}/time-hint", response_model=Task)
async def update_time_hint(
    task_id: UUID,
    update: TaskTimeHintUpdate,
    repo: TaskRepo,
):
    """Set or clear a task's time annotation."""
    try:
        return await repo.update_time_hint(task_id, update.scheduled_time)
    except NotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        )


@router.patch("/tasks/{task_id}/completion", response_model=Task)
async def set_task_completion(
    task_id: UUID,
    update: TaskCompletionUpdate,
    repo: TaskRepo,
):
    """Mark a task done or not done."""
    try:
        return await repo.set_completed(task_id, update.completed)
    except NotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        )
    except PersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        )


@router.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: UUID,
    repo: TaskRepo,
):
    """Delete a task together with its schedule entries."""
    deleted = await repo.delete(task_id)
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Task {task_id} not found",
        )
