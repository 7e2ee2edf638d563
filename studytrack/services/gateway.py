"""Data gateway over the task tables, scoped to a single user.

The gateway is the only place that talks to the task tables. Task data
comes back as domain records and every write publishes a change notification
so cached aggregated views can be invalidated.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, col, select

from .. import models
from ..config import DEFAULT_TAG_COLOR
from ..domain import CompletionEvent, Subtask, Tag, TaskRow, TimeSession
from ..errors import NotFound, UpstreamUnavailable, ValidationFailed
from .rules import sum_session_durations

logger = logging.getLogger(__name__)

ChangeListener = Callable[[str, str], None]

TASK_FIELDS = (
    "title",
    "description",
    "category",
    "priority",
    "progress",
    "completed",
    "due_date",
    "estimated_time",
    "notes",
    "recurring_type",
    "recurring_end_date",
)


class ChangeFeed:
    """In-process stand-in for the realtime row-change channel."""

    def __init__(self) -> None:
        self._listeners: list[ChangeListener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def publish(self, user_id: str, table: str) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(user_id, table)
            except Exception:
                logger.exception("Change listener failed user=%s table=%s", user_id, table)


change_feed = ChangeFeed()


def _enum_value(value: Any) -> Any:
    return getattr(value, "value", value)


def row_to_task(row: models.Task) -> TaskRow:
    return TaskRow(
        id=row.id,
        title=row.title,
        category=_enum_value(row.category),
        priority=_enum_value(row.priority),
        progress=int(row.progress or 0),
        completed=bool(row.completed),
        created_at=row.created_at,
        description=row.description,
        due_date=row.due_date,
        estimated_time=row.estimated_time,
        notes=row.notes,
        recurring_type=_enum_value(row.recurring_type) or "none",
        recurring_end_date=row.recurring_end_date,
    )


def row_to_tag(row: models.Tag) -> Tag:
    return Tag(id=row.id, name=row.name, color=row.color, created_at=row.created_at)


def row_to_subtask(row: models.Subtask) -> Subtask:
    return Subtask(
        id=row.id,
        task_id=row.task_id,
        title=row.title,
        completed=bool(row.completed),
        order_index=int(row.order_index or 0),
        created_at=row.created_at,
    )


def row_to_session(row: models.TimeSession) -> TimeSession:
    return TimeSession(
        id=row.id,
        task_id=row.task_id,
        start_time=row.start_time,
        end_time=row.end_time,
        duration_seconds=row.duration_seconds,
    )


class TaskGateway:
    def __init__(self, session: Session, user_id: str, feed: ChangeFeed = change_feed) -> None:
        if not user_id:
            raise ValueError("user_id is required")
        self.session = session
        self.user_id = user_id
        self._feed = feed

    # ---- low-level helpers ----

    def _commit(self, table: str) -> None:
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise ValidationFailed("Conflicts with an existing record") from exc
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("Commit failed table=%s user=%s", table, self.user_id)
            raise UpstreamUnavailable("Failed to save changes") from exc
        self._feed.publish(self.user_id, table)

    def _query(self, statement):
        try:
            return self.session.exec(statement).all()
        except SQLAlchemyError as exc:
            logger.exception("Query failed user=%s", self.user_id)
            raise UpstreamUnavailable("Failed to load data") from exc

    def _owned(self, model, row_id: str):
        rows = self._query(select(model).where(model.id == row_id, model.user_id == self.user_id))
        return rows[0] if rows else None

    def _require_task(self, task_id: str) -> models.Task:
        row = self._owned(models.Task, task_id)
        if row is None:
            raise NotFound("Task not found")
        return row

    # ---- tasks ----

    def fetch_task_rows(self) -> list[TaskRow]:
        rows = self._query(
            select(models.Task)
            .where(models.Task.user_id == self.user_id)
            .order_by(col(models.Task.created_at).desc())
        )
        return [row_to_task(r) for r in rows]

    def insert_task(self, fields: dict[str, Any]) -> TaskRow:
        row = models.Task(user_id=self.user_id, **{k: v for k, v in fields.items() if k in TASK_FIELDS})
        self.session.add(row)
        self._commit("tasks")
        self.session.refresh(row)
        logger.info("Task created id=%s user=%s", row.id, self.user_id)
        return row_to_task(row)

    def update_task(
        self, task_id: str, fields: dict[str, Any], *, completion: CompletionEvent | None = None
    ) -> TaskRow:
        """Update a task row. A completion event is recorded in the same commit."""
        row = self._require_task(task_id)
        for name, value in fields.items():
            if name in TASK_FIELDS:
                setattr(row, name, value)
        row.updated_at = datetime.utcnow()
        if completion is not None:
            self.session.add(self._history_row(completion))
        self._commit("tasks")
        if completion is not None:
            self._feed.publish(self.user_id, "task_completion_history")
            logger.info("Completion recorded task=%s actual_time=%s", completion.task_id, completion.actual_time)
        self.session.refresh(row)
        logger.debug("Task updated id=%s fields=%s", task_id, sorted(fields))
        return row_to_task(row)

    def delete_task(self, task_id: str) -> bool:
        row = self._owned(models.Task, task_id)
        if row is None:
            logger.debug("Task delete skipped, not found id=%s", task_id)
            return False
        links = self._query(select(models.TaskTag).where(models.TaskTag.task_id == task_id))
        for link in links:
            self.session.delete(link)
        self.session.delete(row)
        self._commit("tasks")
        logger.info("Task deleted id=%s user=%s", task_id, self.user_id)
        return True

    # ---- relations used by the aggregator ----

    def fetch_tags_by_task(self, task_ids: Iterable[str]) -> dict[str, tuple[Tag, ...]]:
        ids = list(task_ids)
        if not ids:
            return {}
        rows = self._query(
            select(models.TaskTag, models.Tag)
            .join(models.Tag, models.Tag.id == models.TaskTag.tag_id)
            .where(col(models.TaskTag.task_id).in_(ids))
            .order_by(models.Tag.name)
        )
        grouped: dict[str, list[Tag]] = defaultdict(list)
        for link, tag in rows:
            grouped[link.task_id].append(row_to_tag(tag))
        return {task_id: tuple(tags) for task_id, tags in grouped.items()}

    def fetch_time_by_task(self, task_ids: Iterable[str]) -> dict[str, int]:
        ids = list(task_ids)
        if not ids:
            return {}
        rows = self._query(
            select(models.TimeSession)
            .where(col(models.TimeSession.task_id).in_(ids))
            .where(col(models.TimeSession.end_time).is_not(None))
        )
        grouped: dict[str, list[TimeSession]] = defaultdict(list)
        for row in rows:
            grouped[row.task_id].append(row_to_session(row))
        return {task_id: sum_session_durations(items) for task_id, items in grouped.items()}

    def fetch_subtasks_by_task(self, task_ids: Iterable[str]) -> dict[str, tuple[Subtask, ...]]:
        ids = list(task_ids)
        if not ids:
            return {}
        rows = self._query(
            select(models.Subtask)
            .where(col(models.Subtask.task_id).in_(ids))
            .order_by(models.Subtask.order_index)
        )
        grouped: dict[str, list[Subtask]] = defaultdict(list)
        for row in rows:
            grouped[row.task_id].append(row_to_subtask(row))
        return {task_id: tuple(items) for task_id, items in grouped.items()}

    # ---- completion history ----

    def _history_row(self, event: CompletionEvent) -> models.CompletionHistory:
        return models.CompletionHistory(
            user_id=self.user_id,
            task_id=event.task_id,
            task_title=event.task_title,
            estimated_time=event.estimated_time,
            actual_time=event.actual_time,
        )

    def list_completion_history(
        self, *, task_id: str | None = None, task_title: str | None = None, limit: int | None = None
    ) -> list[models.CompletionHistory]:
        statement = select(models.CompletionHistory).where(models.CompletionHistory.user_id == self.user_id)
        if task_id is not None:
            statement = statement.where(models.CompletionHistory.task_id == task_id)
        if task_title is not None:
            statement = statement.where(models.CompletionHistory.task_title == task_title)
        statement = statement.order_by(col(models.CompletionHistory.completed_at).desc())
        if limit:
            statement = statement.limit(limit)
        return list(self._query(statement))

    # ---- tags ----

    def list_tags(self) -> list[Tag]:
        rows = self._query(
            select(models.Tag).where(models.Tag.user_id == self.user_id).order_by(models.Tag.name)
        )
        return [row_to_tag(r) for r in rows]

    def create_tag(self, name: str, color: str | None = None) -> Tag:
        name = (name or "").strip()
        if not name:
            raise ValidationFailed("Tag name is required")
        existing = self._query(
            select(models.Tag).where(models.Tag.user_id == self.user_id, models.Tag.name == name)
        )
        if existing:
            raise ValidationFailed(f"Tag '{name}' already exists")
        row = models.Tag(user_id=self.user_id, name=name, color=color or DEFAULT_TAG_COLOR)
        self.session.add(row)
        self._commit("tags")
        self.session.refresh(row)
        return row_to_tag(row)

    def delete_tag(self, tag_id: str) -> bool:
        row = self._owned(models.Tag, tag_id)
        if row is None:
            return False
        for link in self._query(select(models.TaskTag).where(models.TaskTag.tag_id == tag_id)):
            self.session.delete(link)
        self.session.delete(row)
        self._commit("tags")
        return True

    def attach_tag(self, task_id: str, tag_id: str) -> None:
        self._require_task(task_id)
        if self._owned(models.Tag, tag_id) is None:
            raise NotFound("Tag not found")
        already = self._query(
            select(models.TaskTag).where(models.TaskTag.task_id == task_id, models.TaskTag.tag_id == tag_id)
        )
        if already:
            return
        self.session.add(models.TaskTag(user_id=self.user_id, task_id=task_id, tag_id=tag_id))
        self._commit("task_tags")

    def detach_tag(self, task_id: str, tag_id: str) -> bool:
        links = self._query(
            select(models.TaskTag).where(
                models.TaskTag.task_id == task_id,
                models.TaskTag.tag_id == tag_id,
                models.TaskTag.user_id == self.user_id,
            )
        )
        if not links:
            return False
        for link in links:
            self.session.delete(link)
        self._commit("task_tags")
        return True

    # ---- subtasks ----

    def add_subtask(self, task_id: str, title: str) -> Subtask:
        title = (title or "").strip()
        if not title:
            raise ValidationFailed("Subtask title is required")
        self._require_task(task_id)
        count = len(self._query(select(models.Subtask).where(models.Subtask.task_id == task_id)))
        row = models.Subtask(user_id=self.user_id, task_id=task_id, title=title, order_index=count)
        self.session.add(row)
        self._commit("subtasks")
        self.session.refresh(row)
        return row_to_subtask(row)

    def set_subtask(self, subtask_id: str, *, title: str | None = None, completed: bool | None = None) -> Subtask:
        row = self._owned(models.Subtask, subtask_id)
        if row is None:
            raise NotFound("Subtask not found")
        if title is not None:
            if not title.strip():
                raise ValidationFailed("Subtask title is required")
            row.title = title.strip()
        if completed is not None:
            row.completed = completed
        self._commit("subtasks")
        self.session.refresh(row)
        return row_to_subtask(row)

    def delete_subtask(self, subtask_id: str) -> bool:
        row = self._owned(models.Subtask, subtask_id)
        if row is None:
            return False
        self.session.delete(row)
        self._commit("subtasks")
        return True

    # ---- time sessions ----

    def start_session(self, task_id: str, *, notes: str | None = None) -> TimeSession:
        self._require_task(task_id)
        row = models.TimeSession(user_id=self.user_id, task_id=task_id, notes=notes)
        self.session.add(row)
        self._commit("task_time_sessions")
        self.session.refresh(row)
        logger.info("Timer started task=%s session=%s", task_id, row.id)
        return row_to_session(row)

    def stop_session(self, session_id: str, *, duration_seconds: int | None = None) -> TimeSession:
        row = self._owned(models.TimeSession, session_id)
        if row is None:
            raise NotFound("Session not found")
        if row.end_time is not None:
            return row_to_session(row)
        end = datetime.utcnow()
        if duration_seconds is None:
            duration_seconds = int((end - row.start_time).total_seconds())
        row.end_time = end
        row.duration_seconds = max(0, int(duration_seconds))
        self._commit("task_time_sessions")
        self.session.refresh(row)
        logger.info("Timer stopped session=%s duration=%s", session_id, row.duration_seconds)
        return row_to_session(row)

    def list_sessions(self, task_id: str | None = None) -> list[TimeSession]:
        statement = select(models.TimeSession).where(models.TimeSession.user_id == self.user_id)
        if task_id is not None:
            statement = statement.where(models.TimeSession.task_id == task_id)
        rows = self._query(statement.order_by(models.TimeSession.start_time))
        return [row_to_session(r) for r in rows]
