from typing import List, Optional

from fastapi import APIRouter, Depends, Response, status

from ..deps import get_task_service
from ..schemas.task import (
    SessionStart,
    SessionStop,
    Subtask as SubtaskSchema,
    SubtaskCreate,
    SubtaskUpdate,
    TimeSession as TimeSessionSchema,
)
from ..services.facade import TaskService

router = APIRouter()


# Subtasks

@router.post("/tasks/{task_id}/subtasks", response_model=SubtaskSchema, status_code=status.HTTP_201_CREATED)
def add_subtask(task_id: str, subtask: SubtaskCreate, service: TaskService = Depends(get_task_service)):
    """Append a subtask at the end of the task's list."""
    return service.add_subtask(task_id, subtask.title)


@router.patch("/subtasks/{subtask_id}", response_model=SubtaskSchema)
def update_subtask(subtask_id: str, payload: SubtaskUpdate, service: TaskService = Depends(get_task_service)):
    return service.update_subtask(subtask_id, title=payload.title, completed=payload.completed)


@router.delete("/subtasks/{subtask_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_subtask(subtask_id: str, service: TaskService = Depends(get_task_service)):
    service.delete_subtask(subtask_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Study timer

@router.get("/tasks/{task_id}/sessions", response_model=List[TimeSessionSchema])
def list_sessions(task_id: str, service: TaskService = Depends(get_task_service)):
    return service.list_sessions(task_id)


@router.post("/tasks/{task_id}/sessions", response_model=TimeSessionSchema, status_code=status.HTTP_201_CREATED)
def start_timer(
    task_id: str,
    payload: Optional[SessionStart] = None,
    service: TaskService = Depends(get_task_service),
):
    """Open a time session; it counts toward the task once stopped."""
    return service.start_timer(task_id, notes=payload.notes if payload else None)


@router.post("/sessions/{session_id}/stop", response_model=TimeSessionSchema)
def stop_timer(
    session_id: str,
    payload: Optional[SessionStop] = None,
    service: TaskService = Depends(get_task_service),
):
    return service.stop_timer(session_id, payload.duration_seconds if payload else None)
