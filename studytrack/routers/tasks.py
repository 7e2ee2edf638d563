from typing import List

from fastapi import APIRouter, Depends, Response, status

from ..deps import get_task_service
from ..schemas.task import (
    BandMove,
    CompletionRecord,
    ProgressUpdate,
    Task as TaskSchema,
    TaskCreate,
    TaskUpdate,
)
from ..services import views
from ..services.facade import TaskService

router = APIRouter()


def _get_update_data(task_update: TaskUpdate) -> dict:
    if hasattr(task_update, "model_dump"):
        return task_update.model_dump(exclude_unset=True)
    return task_update.dict(exclude_unset=True)


@router.get("/tasks", response_model=List[TaskSchema])
def get_tasks(
    category: str = "all",
    status: str = "all",
    service: TaskService = Depends(get_task_service),
):
    """List aggregated tasks, newest first, filtered by category and status."""
    return views.filter_tasks(service.list_tasks(), category=category, status=status)


@router.post("/tasks", response_model=TaskSchema, status_code=status.HTTP_201_CREATED)
def create_task(task: TaskCreate, service: TaskService = Depends(get_task_service)):
    """Create a new task for the user."""
    data = task.model_dump() if hasattr(task, "model_dump") else task.dict()
    return service.create_task(data)


@router.get("/tasks/{task_id}", response_model=TaskSchema)
def get_task(task_id: str, service: TaskService = Depends(get_task_service)):
    return service.get_task(task_id)


@router.put("/tasks/{task_id}", response_model=TaskSchema)
def update_task(task_id: str, task_update: TaskUpdate, service: TaskService = Depends(get_task_service)):
    """Apply a partial update; progress and completed stay consistent."""
    return service.update_task(task_id, _get_update_data(task_update))


@router.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(task_id: str, service: TaskService = Depends(get_task_service)):
    """Delete a task. Unknown ids are ignored."""
    service.delete_task(task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/tasks/{task_id}/progress", response_model=TaskSchema)
def set_progress(task_id: str, payload: ProgressUpdate, service: TaskService = Depends(get_task_service)):
    return service.set_progress(task_id, payload.progress)


@router.patch("/tasks/{task_id}/toggle", response_model=TaskSchema)
def toggle_complete(task_id: str, service: TaskService = Depends(get_task_service)):
    return service.toggle_complete(task_id)


@router.patch("/tasks/{task_id}/band", response_model=TaskSchema)
def move_to_band(task_id: str, payload: BandMove, service: TaskService = Depends(get_task_service)):
    """Drop a task into a kanban column; progress snaps to the column's value."""
    return service.move_to_band(task_id, payload.band)


@router.get("/tasks/{task_id}/history", response_model=List[CompletionRecord])
def completion_history(task_id: str, service: TaskService = Depends(get_task_service)):
    return service.completion_history(task_id)
