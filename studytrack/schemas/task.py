from pydantic import BaseModel
from datetime import date, datetime
from typing import List, Optional

from ..models import RecurringType, TaskCategory, TaskPriority


class TaskBase(BaseModel):
    """Fields a student fills in on the task form."""
    title: str
    description: Optional[str] = None
    category: TaskCategory
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[date] = None
    estimated_time: Optional[float] = None
    notes: Optional[str] = None
    recurring_type: RecurringType = RecurringType.NONE
    recurring_end_date: Optional[date] = None


class TaskCreate(TaskBase):
    """Schema for creating new tasks."""
    progress: int = 0
    completed: bool = False


class TaskUpdate(BaseModel):
    """Partial update; unset fields are left alone."""
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[TaskCategory] = None
    priority: Optional[TaskPriority] = None
    progress: Optional[int] = None
    completed: Optional[bool] = None
    due_date: Optional[date] = None
    estimated_time: Optional[float] = None
    notes: Optional[str] = None
    recurring_type: Optional[RecurringType] = None
    recurring_end_date: Optional[date] = None


class ProgressUpdate(BaseModel):
    progress: int


class BandMove(BaseModel):
    band: str


class TagCreate(BaseModel):
    name: str
    color: Optional[str] = None


class Tag(BaseModel):
    id: str
    name: str
    color: str
    created_at: datetime

    class Config:
        from_attributes = True


class SubtaskCreate(BaseModel):
    title: str


class SubtaskUpdate(BaseModel):
    title: Optional[str] = None
    completed: Optional[bool] = None


class Subtask(BaseModel):
    id: str
    task_id: str
    title: str
    completed: bool
    order_index: int
    created_at: datetime

    class Config:
        from_attributes = True


class SessionStart(BaseModel):
    notes: Optional[str] = None


class SessionStop(BaseModel):
    duration_seconds: Optional[int] = None


class TimeSession(BaseModel):
    id: str
    task_id: str
    start_time: datetime
    end_time: Optional[datetime] = None
    duration_seconds: Optional[int] = None

    class Config:
        from_attributes = True


class CompletionRecord(BaseModel):
    id: str
    task_id: str
    task_title: str
    estimated_time: Optional[float] = None
    actual_time: int
    completed_at: datetime

    class Config:
        from_attributes = True


class Task(BaseModel):
    """Aggregated task: stored fields plus tags, subtasks and time spent."""
    id: str
    title: str
    description: Optional[str] = None
    category: str
    priority: str
    progress: int
    completed: bool
    created_at: datetime
    due_date: Optional[date] = None
    estimated_time: Optional[float] = None
    notes: Optional[str] = None
    recurring_type: str = "none"
    recurring_end_date: Optional[date] = None
    tags: List[Tag] = []
    subtasks: List[Subtask] = []
    total_time_spent: int = 0

    class Config:
        from_attributes = True
