# tests/fakes.py

from __future__ import annotations

from datetime import datetime
from types import SimpleNamespace
from typing import Any

from studytrack.domain import Subtask, Tag, TaskRow

CREATED = datetime(2024, 3, 1, 9, 0, 0)


def make_row(task_id: str, **overrides: Any) -> TaskRow:
    fields = dict(
        id=task_id,
        title=f"Task {task_id}",
        category="homework",
        priority="medium",
        progress=0,
        completed=False,
        created_at=CREATED,
    )
    fields.update(overrides)
    return TaskRow(**fields)


def make_tag(tag_id: str, name: str = "math") -> Tag:
    return Tag(id=tag_id, name=name, color="#6366f1", created_at=CREATED)


def make_subtask(subtask_id: str, task_id: str, order_index: int) -> Subtask:
    return Subtask(
        id=subtask_id,
        task_id=task_id,
        title=f"Step {order_index}",
        completed=False,
        order_index=order_index,
        created_at=CREATED,
    )


class FakeTaskSource:
    """
    In-memory TaskSource for aggregator tests.

    Any relation listed in ``failing`` raises when fetched, and every fetch
    is recorded in ``calls``.
    """

    def __init__(self, rows, tags=None, time=None, subtasks=None, failing=()) -> None:
        self.rows = list(rows)
        self.tags = tags or {}
        self.time = time or {}
        self.subtasks = subtasks or {}
        self.failing = set(failing)
        self.calls: list[str] = []

    def _fetch(self, name: str, value):
        self.calls.append(name)
        if name in self.failing:
            raise RuntimeError(f"{name} unavailable")
        return value

    def fetch_task_rows(self):
        return self._fetch("rows", self.rows)

    def fetch_tags_by_task(self, task_ids):
        return self._fetch("tags", self.tags)

    def fetch_time_by_task(self, task_ids):
        return self._fetch("time", self.time)

    def fetch_subtasks_by_task(self, task_ids):
        return self._fetch("subtasks", self.subtasks)


class FakeAIGateway:
    """
    Deterministic AIGateway replacement.

    - ``text`` is returned by complete_text
    - ``structured`` is returned by complete_structured
    - every call is captured for assertions
    """

    model = "fake-model"

    def __init__(self, text: str = "ok", structured: dict[str, Any] | None = None) -> None:
        self.text = text
        self.structured = structured or {}
        self.calls: list[tuple[str, Any]] = []
        self.replies: list[Any] = []

    def complete_text(self, system: str, user: str) -> str:
        self.calls.append(("text", user))
        return self.text

    def complete_structured(self, system: str, user: str, tool: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(("structured", tool["name"]))
        return dict(self.structured)

    def create(self, messages, **kwargs):
        self.calls.append(("create", messages))
        if self.replies:
            return self.replies.pop(0)
        return SimpleNamespace(content=self.text, tool_calls=None)
