from typing import List

from fastapi import APIRouter, Depends, Response, status

from ..deps import get_task_service
from ..schemas.task import Tag as TagSchema, TagCreate, Task as TaskSchema
from ..services.facade import TaskService

router = APIRouter()


@router.get("/tags", response_model=List[TagSchema])
def list_tags(service: TaskService = Depends(get_task_service)):
    return service.list_tags()


@router.post("/tags", response_model=TagSchema, status_code=status.HTTP_201_CREATED)
def create_tag(tag: TagCreate, service: TaskService = Depends(get_task_service)):
    """Create a tag; names are unique per user."""
    return service.create_tag(tag.name, tag.color)


@router.delete("/tags/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_tag(tag_id: str, service: TaskService = Depends(get_task_service)):
    service.delete_tag(tag_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/tasks/{task_id}/tags/{tag_id}", response_model=TaskSchema)
def attach_tag(task_id: str, tag_id: str, service: TaskService = Depends(get_task_service)):
    return service.attach_tag(task_id, tag_id)


@router.delete("/tasks/{task_id}/tags/{tag_id}", response_model=TaskSchema)
def detach_tag(task_id: str, tag_id: str, service: TaskService = Depends(get_task_service)):
    return service.detach_tag(task_id, tag_id)
