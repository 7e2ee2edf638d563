"""Task mutations.

Every mutation validates before touching the gateway, runs the same
derived-state rule locally (optimistic patch) and on the stored row, and
re-aggregates afterwards. A failed write restores the previous list.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Optional

from .. import config
from ..domain import CATEGORIES, PRIORITIES, RECURRING_TYPES, Subtask, Tag, Task, TimeSession
from ..errors import NotFound, ValidationFailed
from . import rules, views
from .aggregator import load_tasks
from .gateway import TaskGateway
from .store import TaskListStore

logger = logging.getLogger(__name__)

IMMUTABLE_FIELDS = ("id", "created_at", "user_id", "tags", "subtasks", "total_time_spent")
DERIVED_FIELDS = ("progress", "completed")


def _parse_date(name: str, value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            if "T" in text or " " in text:
                return datetime.fromisoformat(text).date()
            return date.fromisoformat(text)
        except ValueError:
            pass
    raise ValidationFailed(f"Invalid date for {name}: {value!r}")


def _choice(name: str, value: Any, allowed: tuple[str, ...]) -> str:
    value = getattr(value, "value", value)
    if value not in allowed:
        raise ValidationFailed(f"{name} must be one of: {', '.join(allowed)}")
    return value


def validate_task_fields(data: dict[str, Any], *, creating: bool) -> dict[str, Any]:
    """Check and normalise user-supplied task fields. Raises ValidationFailed."""
    fields = {k: v for k, v in data.items() if k not in IMMUTABLE_FIELDS}

    if creating or "title" in fields:
        title = (fields.get("title") or "").strip()
        if not title:
            raise ValidationFailed("Title is required")
        fields["title"] = title

    if creating and not fields.get("category"):
        raise ValidationFailed("Category is required")
    if "category" in fields:
        fields["category"] = _choice("category", fields["category"], CATEGORIES)
    if "priority" in fields and fields["priority"] is not None:
        fields["priority"] = _choice("priority", fields["priority"], PRIORITIES)
    if "recurring_type" in fields:
        fields["recurring_type"] = _choice("recurring_type", fields["recurring_type"] or "none", RECURRING_TYPES)

    for name in ("due_date", "recurring_end_date"):
        if name in fields:
            fields[name] = _parse_date(name, fields[name])
    due, ends = fields.get("due_date"), fields.get("recurring_end_date")
    if due and ends and ends < due:
        raise ValidationFailed("recurring_end_date must not be before due_date")

    if fields.get("estimated_time") is not None:
        try:
            estimate = float(fields["estimated_time"])
        except (TypeError, ValueError):
            raise ValidationFailed("estimated_time must be a number") from None
        if estimate <= 0:
            raise ValidationFailed("estimated_time must be positive")
        fields["estimated_time"] = estimate

    if fields.get("progress") is not None:
        try:
            fields["progress"] = float(fields["progress"])
        except (TypeError, ValueError):
            raise ValidationFailed("progress must be a number") from None

    for name in ("description", "notes"):
        if name in fields and isinstance(fields[name], str) and not fields[name].strip():
            fields[name] = None

    return fields


class TaskService:
    def __init__(
        self,
        gateway: TaskGateway,
        store: TaskListStore,
        *,
        reset_progress_on_uncomplete: bool = config.RESET_PROGRESS_ON_UNCOMPLETE,
    ) -> None:
        self.gateway = gateway
        self.store = store
        self.reset_progress_on_uncomplete = reset_progress_on_uncomplete

    # ---- reads ----

    def refresh(self) -> list[Task]:
        token = self.store.begin_request()
        tasks = load_tasks(self.gateway)
        self.store.commit(token, tasks)
        return list(self.store.tasks())

    def list_tasks(self) -> list[Task]:
        if self.store.stale:
            return self.refresh()
        return list(self.store.tasks())

    def get_task(self, task_id: str) -> Task:
        for task in self.list_tasks():
            if task.id == task_id:
                return task
        raise NotFound("Task not found")

    # ---- task mutations ----

    def create_task(self, data: dict[str, Any]) -> Task:
        fields = validate_task_fields(data, creating=True)
        progress, completed = rules.normalize_progress_fields(fields.get("progress"), fields.get("completed"))
        fields["progress"] = progress
        fields["completed"] = completed
        if not fields.get("priority"):
            fields["priority"] = "medium"
        fields.setdefault("recurring_type", "none")

        row = self.gateway.insert_task(fields)
        self.refresh()
        return self.store.get(row.id) or self.get_task(row.id)

    def update_task(self, task_id: str, patch: dict[str, Any]) -> Task:
        fields = validate_task_fields(patch, creating=False)
        current = self.get_task(task_id)

        plain = {k: v for k, v in fields.items() if k not in DERIVED_FIELDS}
        working = replace(current, **{k: v for k, v in plain.items() if k in Task.__dataclass_fields__})

        progress, completed = fields.get("progress"), fields.get("completed")
        if progress is not None and completed is not None:
            # Both given: progress decides, an explicit completed=True forces 100.
            progress, completed = rules.normalize_progress_fields(progress, completed)
            working = replace(working, progress=progress, completed=completed)
        elif progress is not None:
            working = rules.apply_progress(working, progress).task
        elif completed is not None and bool(completed) != working.completed:
            working = rules.toggle_complete(working, reset_progress=self.reset_progress_on_uncomplete).task

        plain["progress"] = working.progress
        plain["completed"] = working.completed
        return self._write(current, working, plain, rules.completion_between(current, working))

    def delete_task(self, task_id: str) -> bool:
        """Delete a task. Deleting an unknown id is a no-op and returns False."""
        snapshot = self.store.remove_local(task_id)
        try:
            deleted = self.gateway.delete_task(task_id)
        except Exception:
            self.store.restore(snapshot)
            raise
        if deleted:
            self.refresh()
        return deleted

    def set_progress(self, task_id: str, progress: float | int) -> Task:
        current = self.get_task(task_id)
        result = rules.apply_progress(current, progress)
        return self._write(
            current,
            result.task,
            {"progress": result.task.progress, "completed": result.task.completed},
            result.completion,
        )

    def toggle_complete(self, task_id: str) -> Task:
        current = self.get_task(task_id)
        result = rules.toggle_complete(current, reset_progress=self.reset_progress_on_uncomplete)
        return self._write(
            current,
            result.task,
            {"progress": result.task.progress, "completed": result.task.completed},
            result.completion,
        )

    def move_to_band(self, task_id: str, band: str) -> Task:
        return self.set_progress(task_id, views.progress_for_band(band))

    def _write(self, current: Task, updated: Task, fields: dict[str, Any], completion) -> Task:
        snapshot = self.store.apply_local(updated)
        try:
            self.gateway.update_task(current.id, fields, completion=completion)
        except Exception:
            logger.warning("Task write failed, rolling back local state id=%s", current.id)
            self.store.restore(snapshot)
            raise
        self.refresh()
        return self.store.get(current.id) or updated

    # ---- history ----

    def completion_history(self, task_id: str):
        self.get_task(task_id)
        return self.gateway.list_completion_history(task_id=task_id)

    # ---- tags ----

    def list_tags(self) -> list[Tag]:
        return self.gateway.list_tags()

    def create_tag(self, name: str, color: str | None = None) -> Tag:
        return self.gateway.create_tag(name, color)

    def delete_tag(self, tag_id: str) -> bool:
        deleted = self.gateway.delete_tag(tag_id)
        if deleted:
            self.refresh()
        return deleted

    def attach_tag(self, task_id: str, tag_id: str) -> Task:
        self.gateway.attach_tag(task_id, tag_id)
        self.refresh()
        return self.get_task(task_id)

    def detach_tag(self, task_id: str, tag_id: str) -> Task:
        self.gateway.detach_tag(task_id, tag_id)
        self.refresh()
        return self.get_task(task_id)

    # ---- subtasks ----

    def add_subtask(self, task_id: str, title: str) -> Subtask:
        subtask = self.gateway.add_subtask(task_id, title)
        self.refresh()
        return subtask

    def update_subtask(self, subtask_id: str, *, title: str | None = None, completed: bool | None = None) -> Subtask:
        subtask = self.gateway.set_subtask(subtask_id, title=title, completed=completed)
        self.refresh()
        return subtask

    def delete_subtask(self, subtask_id: str) -> bool:
        deleted = self.gateway.delete_subtask(subtask_id)
        if deleted:
            self.refresh()
        return deleted

    # ---- timer ----

    def start_timer(self, task_id: str, notes: str | None = None) -> TimeSession:
        return self.gateway.start_session(task_id, notes=notes)

    def stop_timer(self, session_id: str, duration_seconds: int | None = None) -> TimeSession:
        if duration_seconds is not None and duration_seconds < 0:
            raise ValidationFailed("duration_seconds must not be negative")
        session = self.gateway.stop_session(session_id, duration_seconds=duration_seconds)
        self.refresh()
        return session

    def list_sessions(self, task_id: str) -> list[TimeSession]:
        self.get_task(task_id)
        return self.gateway.list_sessions(task_id)
