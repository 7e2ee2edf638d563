"""Data access for notes, weekly summaries, AI analyses and chat history."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, col, select

from .. import models
from ..errors import NotFound, UpstreamUnavailable, ValidationFailed
from .gateway import ChangeFeed, change_feed

logger = logging.getLogger(__name__)

NOTE_FIELDS = ("title", "content", "folder", "tags", "task_id")


class RecordGateway:
    def __init__(self, session: Session, user_id: str, feed: ChangeFeed = change_feed) -> None:
        self.session = session
        self.user_id = user_id
        self._feed = feed

    def _commit(self, table: str) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("Commit failed table=%s user=%s", table, self.user_id)
            raise UpstreamUnavailable("Failed to save changes") from exc
        self._feed.publish(self.user_id, table)

    def _all(self, statement) -> list:
        try:
            return list(self.session.exec(statement).all())
        except SQLAlchemyError as exc:
            logger.exception("Query failed user=%s", self.user_id)
            raise UpstreamUnavailable("Failed to load data") from exc

    # ---- notes ----

    def _note_values(self, fields: dict[str, Any]) -> dict[str, Any]:
        values = {k: v for k, v in fields.items() if k in NOTE_FIELDS}
        if "title" in values:
            values["title"] = (values["title"] or "").strip()
            if not values["title"]:
                raise ValidationFailed("Note title is required")
        if "tags" in values:
            values["tags"] = [t.strip() for t in values["tags"] or [] if t and t.strip()]
        if values.get("task_id"):
            owned = self._all(
                select(models.Task.id).where(models.Task.id == values["task_id"], models.Task.user_id == self.user_id)
            )
            if not owned:
                raise NotFound("Task not found")
        return values

    def list_notes(self, *, folder: str | None = None, task_id: str | None = None) -> list[models.Note]:
        statement = select(models.Note).where(models.Note.user_id == self.user_id)
        if folder is not None:
            statement = statement.where(models.Note.folder == folder)
        if task_id is not None:
            statement = statement.where(models.Note.task_id == task_id)
        return self._all(statement.order_by(col(models.Note.updated_at).desc()))

    def get_note(self, note_id: str) -> models.Note:
        rows = self._all(
            select(models.Note).where(models.Note.id == note_id, models.Note.user_id == self.user_id)
        )
        if not rows:
            raise NotFound("Note not found")
        return rows[0]

    def create_note(self, fields: dict[str, Any]) -> models.Note:
        values = self._note_values({"title": None, "tags": [], **fields})
        note = models.Note(user_id=self.user_id, **values)
        self.session.add(note)
        self._commit("notes")
        self.session.refresh(note)
        return note

    def update_note(self, note_id: str, fields: dict[str, Any]) -> models.Note:
        note = self.get_note(note_id)
        for name, value in self._note_values(fields).items():
            setattr(note, name, value)
        note.updated_at = datetime.utcnow()
        self._commit("notes")
        self.session.refresh(note)
        return note

    def delete_note(self, note_id: str) -> bool:
        rows = self._all(
            select(models.Note).where(models.Note.id == note_id, models.Note.user_id == self.user_id)
        )
        if not rows:
            return False
        self.session.delete(rows[0])
        self._commit("notes")
        return True

    # ---- weekly summaries ----

    def find_weekly_summary(self, week_start: date, week_end: date) -> Optional[models.WeeklySummary]:
        rows = self._all(
            select(models.WeeklySummary).where(
                models.WeeklySummary.user_id == self.user_id,
                models.WeeklySummary.week_start == week_start,
                models.WeeklySummary.week_end == week_end,
            )
        )
        return rows[0] if rows else None

    def insert_weekly_summary(
        self, week_start: date, week_end: date, summary: str, insights: dict[str, Any]
    ) -> models.WeeklySummary:
        row = models.WeeklySummary(
            user_id=self.user_id,
            week_start=week_start,
            week_end=week_end,
            summary=summary,
            insights=insights,
        )
        self.session.add(row)
        try:
            self.session.commit()
        except IntegrityError:
            # Another request stored this week first.
            self.session.rollback()
            existing = self.find_weekly_summary(week_start, week_end)
            if existing is None:
                raise UpstreamUnavailable("Failed to save changes") from None
            return existing
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("Commit failed table=weekly_summaries user=%s", self.user_id)
            raise UpstreamUnavailable("Failed to save changes") from exc
        self._feed.publish(self.user_id, "weekly_summaries")
        self.session.refresh(row)
        return row

    def list_weekly_summaries(self, limit: int = 10) -> list[models.WeeklySummary]:
        return self._all(
            select(models.WeeklySummary)
            .where(models.WeeklySummary.user_id == self.user_id)
            .order_by(col(models.WeeklySummary.week_start).desc())
            .limit(limit)
        )

    # ---- AI analyses ----

    def insert_analysis(
        self, task_id: str, analysis_type: str, input_data: dict[str, Any], result: dict[str, Any], model: str
    ) -> models.AIAnalysis:
        row = models.AIAnalysis(
            user_id=self.user_id,
            task_id=task_id,
            analysis_type=analysis_type,
            input_data=input_data,
            result=result,
            model=model,
        )
        self.session.add(row)
        self._commit("ai_analysis")
        self.session.refresh(row)
        return row

    # ---- conversations ----

    def get_or_create_conversation(self, conversation_id: str | None, title: str) -> models.Conversation:
        if conversation_id:
            rows = self._all(
                select(models.Conversation).where(
                    models.Conversation.id == conversation_id,
                    models.Conversation.user_id == self.user_id,
                )
            )
            if rows:
                return rows[0]
        conversation = models.Conversation(user_id=self.user_id, title=title[:80])
        self.session.add(conversation)
        self._commit("conversations")
        self.session.refresh(conversation)
        return conversation

    def add_message(self, conversation_id: str, role: models.MessageRole, content: str) -> models.Message:
        message = models.Message(
            conversation_id=conversation_id,
            user_id=self.user_id,
            role=role,
            content=content,
        )
        self.session.add(message)
        self._commit("messages")
        return message

    def list_messages(self, conversation_id: str, limit: int = 40) -> list[models.Message]:
        rows = self._all(
            select(models.Message)
            .where(models.Message.conversation_id == conversation_id)
            .order_by(col(models.Message.created_at).desc())
            .limit(limit)
        )
        return list(reversed(rows))
