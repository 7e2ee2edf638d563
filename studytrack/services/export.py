"""JSON backup and CSV export of the aggregated task list."""

from __future__ import annotations

import csv
import io
from datetime import date, datetime
from typing import Any, Iterable, Optional, Sequence

from ..domain import Tag, Task, TimeSession

CSV_HEADER = ["Title", "Description", "Category", "Priority", "Progress", "Status", "Due Date", "Time Spent (hours)"]


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def tag_to_dict(tag: Tag) -> dict[str, Any]:
    return {"id": tag.id, "name": tag.name, "color": tag.color, "createdAt": _iso(tag.created_at)}


def task_to_dict(task: Task) -> dict[str, Any]:
    """camelCase task shape used by the web client and the JSON backup."""
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "category": task.category,
        "priority": task.priority,
        "progress": task.progress,
        "completed": task.completed,
        "createdAt": _iso(task.created_at),
        "dueDate": _iso(task.due_date),
        "estimatedTime": task.estimated_time,
        "notes": task.notes,
        "recurringType": task.recurring_type,
        "recurringEndDate": _iso(task.recurring_end_date),
        "tags": [tag_to_dict(t) for t in task.tags],
        "subtasks": [
            {
                "id": s.id,
                "taskId": s.task_id,
                "title": s.title,
                "completed": s.completed,
                "orderIndex": s.order_index,
                "createdAt": _iso(s.created_at),
            }
            for s in task.subtasks
        ],
        "totalTimeSpent": task.total_time_spent,
    }


def session_to_dict(session: TimeSession) -> dict[str, Any]:
    return {
        "id": session.id,
        "taskId": session.task_id,
        "startTime": _iso(session.start_time),
        "endTime": _iso(session.end_time),
        "durationSeconds": session.duration_seconds,
    }


def note_to_dict(note: Any) -> dict[str, Any]:
    return {
        "id": note.id,
        "title": note.title,
        "content": note.content,
        "taskId": note.task_id,
        "folder": note.folder,
        "tags": list(note.tags or []),
        "createdAt": _iso(note.created_at),
        "updatedAt": _iso(note.updated_at),
    }


def export_json(
    tasks: Sequence[Task],
    notes: Iterable[Any] = (),
    tags: Iterable[Tag] = (),
    sessions: Iterable[TimeSession] = (),
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    return {
        "exportDate": (now or datetime.utcnow()).isoformat(),
        "tasks": [task_to_dict(t) for t in tasks],
        "notes": [note_to_dict(n) for n in notes],
        "tags": [tag_to_dict(t) for t in tags],
        "timeSessions": [session_to_dict(s) for s in sessions],
    }


def export_csv(tasks: Iterable[Task]) -> str:
    buffer = io.StringIO()
    buffer.write(",".join(CSV_HEADER) + "\n")
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for task in tasks:
        writer.writerow(
            [
                task.title,
                task.description or "",
                task.category,
                task.priority,
                task.progress,
                "Completed" if task.completed else "In Progress",
                _iso(task.due_date) or "",
                f"{task.total_time_spent / 3600:.2f}",
            ]
        )
    return buffer.getvalue()
