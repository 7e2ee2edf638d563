"""In-memory task records produced by the aggregator.

Rows coming out of the database are converted into these frozen
dataclasses once, at the aggregation boundary. Everything downstream
(rules, views, export, the AI prompts) works on these records only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

CATEGORIES = ("homework", "revision", "projects", "other")
PRIORITIES = ("low", "medium", "high")
RECURRING_TYPES = ("none", "daily", "weekly", "monthly")


@dataclass(frozen=True)
class Tag:
    id: str
    name: str
    color: str
    created_at: datetime


@dataclass(frozen=True)
class Subtask:
    id: str
    task_id: str
    title: str
    completed: bool
    order_index: int
    created_at: datetime


@dataclass(frozen=True)
class TimeSession:
    id: str
    task_id: str
    start_time: datetime
    end_time: Optional[datetime] = None
    duration_seconds: Optional[int] = None


@dataclass(frozen=True)
class TaskRow:
    """Stored task attributes, without anything derived from other tables."""

    id: str
    title: str
    category: str
    priority: str
    progress: int
    completed: bool
    created_at: datetime
    description: Optional[str] = None
    due_date: Optional[date] = None
    estimated_time: Optional[float] = None
    notes: Optional[str] = None
    recurring_type: str = "none"
    recurring_end_date: Optional[date] = None


@dataclass(frozen=True)
class Task(TaskRow):
    """A task joined with its tags, ordered subtasks and closed time."""

    tags: tuple[Tag, ...] = field(default_factory=tuple)
    subtasks: tuple[Subtask, ...] = field(default_factory=tuple)
    total_time_spent: int = 0


@dataclass(frozen=True)
class CompletionEvent:
    """Emitted when a task flips from not completed to completed."""

    task_id: str
    task_title: str
    estimated_time: Optional[float]
    actual_time: int


@dataclass(frozen=True)
class RuleResult:
    task: Task
    completion: Optional[CompletionEvent] = None
