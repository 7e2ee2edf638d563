"""Read-only projections over the aggregated task list.

None of these functions mutate their input; given the same list they
always return the same result.
"""

from __future__ import annotations

import math
from collections import OrderedDict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..domain import CATEGORIES, Task
from ..errors import ValidationFailed

STATUS_FILTERS = ("all", "completed", "incomplete")

TODO = "todo"
IN_PROGRESS = "inProgress"
DONE = "done"
BANDS = (TODO, IN_PROGRESS, DONE)

# Progress written when a task is dropped into a band.
BAND_PROGRESS = {TODO: 0, IN_PROGRESS: 50, DONE: 100}


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _due_day(task: Task) -> Optional[date]:
    due = task.due_date
    if due is None:
        return None
    if isinstance(due, datetime):
        return due.date()
    return due


def is_completed(task: Task) -> bool:
    return task.completed or task.progress == 100


# ---- board filter ----


def filter_tasks(tasks: Iterable[Task], category: str = "all", status: str = "all") -> list[Task]:
    if category != "all" and category not in CATEGORIES:
        raise ValidationFailed(f"Unknown category: {category}")
    if status not in STATUS_FILTERS:
        raise ValidationFailed(f"Unknown status filter: {status}")

    out = []
    for task in tasks:
        if category != "all" and task.category != category:
            continue
        if status == "completed" and not is_completed(task):
            continue
        if status == "incomplete" and is_completed(task):
            continue
        out.append(task)
    return out


# ---- calendar ----


def group_by_calendar_day(tasks: Iterable[Task]) -> "OrderedDict[date, list[Task]]":
    """Bucket tasks by due day, ascending. Tasks without a due date are left out."""
    buckets: dict[date, list[Task]] = {}
    for task in tasks:
        day = _due_day(task)
        if day is None:
            continue
        buckets.setdefault(day, []).append(task)
    return OrderedDict(sorted(buckets.items()))


def tasks_for_month(tasks: Iterable[Task], year: int, month: int) -> dict[int, list[Task]]:
    if not 1 <= month <= 12:
        raise ValidationFailed("month must be between 1 and 12")
    return {
        day.day: bucket
        for day, bucket in group_by_calendar_day(tasks).items()
        if day.year == year and day.month == month
    }


# ---- kanban ----


def band_for(progress: int) -> str:
    if progress <= 0:
        return TODO
    if progress >= 100:
        return DONE
    return IN_PROGRESS


def kanban_board(tasks: Iterable[Task]) -> dict[str, list[Task]]:
    board: dict[str, list[Task]] = {band: [] for band in BANDS}
    for task in tasks:
        board[band_for(task.progress)].append(task)
    return board


def progress_for_band(band: str) -> int:
    try:
        return BAND_PROGRESS[band]
    except KeyError:
        raise ValidationFailed(f"Unknown kanban band: {band}") from None


# ---- timeline ----


@dataclass(frozen=True)
class TimelineGroup:
    date: date
    label: str
    tasks: tuple[Task, ...]
    is_past: bool
    is_today: bool


def timeline(tasks: Iterable[Task], today: Optional[date] = None) -> list[TimelineGroup]:
    today = today or date.today()
    return [
        TimelineGroup(
            date=day,
            label=day.strftime("%a, %b %d, %Y"),
            tasks=tuple(bucket),
            is_past=day < today,
            is_today=day == today,
        )
        for day, bucket in group_by_calendar_day(tasks).items()
    ]


# ---- analytics ----


@dataclass(frozen=True)
class CategoryProgress:
    category: str
    progress: int
    count: int


def average_progress_by_category(tasks: Sequence[Task]) -> list[CategoryProgress]:
    out = []
    for category in CATEGORIES:
        values = [t.progress for t in tasks if t.category == category]
        average = _round_half_up(sum(values) / len(values)) if values else 0
        out.append(CategoryProgress(category=category, progress=average, count=len(values)))
    return out


def completion_breakdown(tasks: Sequence[Task]) -> dict[str, int]:
    return {
        "completed": sum(1 for t in tasks if is_completed(t)),
        "inProgress": sum(1 for t in tasks if not t.completed and 0 < t.progress < 100),
        "notStarted": sum(1 for t in tasks if t.progress == 0 and not t.completed),
    }


def progress_trend(tasks: Sequence[Task], limit: int = 10) -> list[dict]:
    """Progress of the most recently created tasks, oldest first."""
    if limit <= 0:
        return []
    ordered = sorted(tasks, key=lambda t: t.created_at)
    return [
        {"id": t.id, "title": t.title, "progress": t.progress, "createdAt": t.created_at}
        for t in ordered[-limit:]
    ]


def stats(tasks: Sequence[Task]) -> dict[str, int]:
    total = len(tasks)
    completed = sum(1 for t in tasks if is_completed(t))
    return {
        "total": total,
        "completed": completed,
        "inProgress": total - completed,
        "averageProgress": _round_half_up(sum(t.progress for t in tasks) / total) if total else 0,
        "totalTimeSpent": sum(t.total_time_spent for t in tasks),
    }
