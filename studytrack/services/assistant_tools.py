"""Task tools the study assistant may call during a chat turn.

Each tool returns a JSON string that is fed back to the model.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable

from ..domain import Task
from ..errors import StudyTrackError
from . import views
from .facade import TaskService

logger = logging.getLogger(__name__)


def _task_summary(task: Task) -> dict[str, Any]:
    return {
        "id": task.id,
        "title": task.title,
        "category": task.category,
        "priority": task.priority,
        "progress": task.progress,
        "completed": task.completed,
        "dueDate": task.due_date.isoformat() if task.due_date else None,
    }


def list_tasks(service: TaskService, status: str = "all", category: str = "all", limit: int = 20) -> str:
    """List the user's tasks with optional filtering."""
    tasks = views.filter_tasks(service.list_tasks(), category=category, status=status)
    return json.dumps([_task_summary(t) for t in tasks[: max(1, int(limit))]])


def add_task(
    service: TaskService,
    title: str,
    category: str = "homework",
    description: str = "",
    priority: str = "medium",
    due_date: str | None = None,
) -> str:
    """Create a new task."""
    task = service.create_task(
        {
            "title": title,
            "category": category,
            "description": description,
            "priority": priority,
            "due_date": due_date,
        }
    )
    return json.dumps(_task_summary(task))


def update_progress(service: TaskService, task_id: str, progress: int) -> str:
    """Set a task's progress percentage."""
    return json.dumps(_task_summary(service.set_progress(task_id, progress)))


def complete_task(service: TaskService, task_id: str) -> str:
    """Mark a task as complete."""
    task = service.get_task(task_id)
    if not task.completed:
        task = service.toggle_complete(task_id)
    return json.dumps(_task_summary(task))


TOOLS: dict[str, Callable[..., str]] = {
    "list_tasks": list_tasks,
    "add_task": add_task,
    "update_progress": update_progress,
    "complete_task": complete_task,
}

TOOL_SCHEMAS = [
    {
        "type": "function",
        "function": {
            "name": "list_tasks",
            "description": "List the student's tasks with optional filtering",
            "parameters": {
                "type": "object",
                "properties": {
                    "status": {"type": "string", "enum": ["all", "completed", "incomplete"]},
                    "category": {"type": "string", "enum": ["all", "homework", "revision", "projects", "other"]},
                    "limit": {"type": "integer", "description": "Maximum number of tasks to return"},
                },
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "add_task",
            "description": "Create a new study task",
            "parameters": {
                "type": "object",
                "properties": {
                    "title": {"type": "string", "description": "Task title"},
                    "category": {"type": "string", "enum": ["homework", "revision", "projects", "other"]},
                    "description": {"type": "string", "description": "Task description"},
                    "priority": {"type": "string", "enum": ["low", "medium", "high"]},
                    "due_date": {"type": "string", "description": "Due date as YYYY-MM-DD"},
                },
                "required": ["title"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "update_progress",
            "description": "Set the progress percentage (0-100) of a task",
            "parameters": {
                "type": "object",
                "properties": {
                    "task_id": {"type": "string", "description": "Task ID"},
                    "progress": {"type": "integer", "minimum": 0, "maximum": 100},
                },
                "required": ["task_id", "progress"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "complete_task",
            "description": "Mark a task as complete",
            "parameters": {
                "type": "object",
                "properties": {"task_id": {"type": "string", "description": "Task ID"}},
                "required": ["task_id"],
            },
        },
    },
]


def run_tool(service: TaskService, name: str, raw_arguments: str | None) -> str:
    """Execute one tool call; failures are reported back to the model as JSON."""
    tool = TOOLS.get(name)
    if tool is None:
        return json.dumps({"error": f"Unknown tool: {name}"})
    try:
        arguments = json.loads(raw_arguments or "{}")
    except ValueError:
        return json.dumps({"error": "Arguments were not valid JSON"})
    try:
        return tool(service, **arguments)
    except StudyTrackError as exc:
        logger.info("Assistant tool %s rejected: %s", name, exc.detail)
        return json.dumps({"error": exc.detail})
    except TypeError as exc:
        return json.dumps({"error": f"Bad arguments: {exc}"})
