from datetime import date, datetime
from typing import Optional
from uuid import uuid4
import enum

from sqlmodel import Field, SQLModel, UniqueConstraint


class TaskCategory(str, enum.Enum):
    HOMEWORK = "homework"
    REVISION = "revision"
    PROJECTS = "projects"
    OTHER = "other"


class TaskPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RecurringType(str, enum.Enum):
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class Task(SQLModel, table=True):
    """Study task row. Tags, time and subtasks live in their own tables."""
    __tablename__ = "tasks"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    user_id: str = Field(index=True, foreign_key="users.id")
    title: str
    description: Optional[str] = None
    category: TaskCategory = Field(default=TaskCategory.HOMEWORK)
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM)
    progress: int = Field(default=0)
    completed: bool = Field(default=False)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    due_date: Optional[date] = None
    estimated_time: Optional[float] = None
    notes: Optional[str] = None
    recurring_type: RecurringType = Field(default=RecurringType.NONE)
    recurring_end_date: Optional[date] = None


class Tag(SQLModel, table=True):
    __tablename__ = "tags"
    __table_args__ = (UniqueConstraint("user_id", "name"),)

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    user_id: str = Field(index=True, foreign_key="users.id")
    name: str
    color: str
    created_at: datetime = Field(default_factory=datetime.utcnow)


class TaskTag(SQLModel, table=True):
    """Many-to-many link between tasks and tags."""
    __tablename__ = "task_tags"
    __table_args__ = (UniqueConstraint("task_id", "tag_id"),)

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    user_id: str = Field(index=True, foreign_key="users.id")
    task_id: str = Field(index=True, foreign_key="tasks.id")
    tag_id: str = Field(index=True, foreign_key="tags.id")
    created_at: datetime = Field(default_factory=datetime.utcnow)


class TimeSession(SQLModel, table=True):
    __tablename__ = "task_time_sessions"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    user_id: str = Field(index=True, foreign_key="users.id")
    task_id: str = Field(index=True)
    start_time: datetime = Field(default_factory=datetime.utcnow)
    end_time: Optional[datetime] = None
    duration_seconds: Optional[int] = None
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


class Subtask(SQLModel, table=True):
    __tablename__ = "subtasks"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    user_id: str = Field(index=True, foreign_key="users.id")
    task_id: str = Field(index=True)
    title: str
    completed: bool = Field(default=False)
    order_index: int = Field(default=0)
    created_at: datetime = Field(default_factory=datetime.utcnow)


class CompletionHistory(SQLModel, table=True):
    """Append-only record written when a task becomes completed."""
    __tablename__ = "task_completion_history"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    user_id: str = Field(index=True, foreign_key="users.id")
    task_id: str = Field(index=True)
    task_title: str = Field(index=True)
    estimated_time: Optional[float] = None
    actual_time: int = Field(default=0)
    completed_at: datetime = Field(default_factory=datetime.utcnow)
    created_at: datetime = Field(default_factory=datetime.utcnow)
