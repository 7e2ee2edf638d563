# tests/test_records.py

from __future__ import annotations

from datetime import date

import pytest

from studytrack.errors import NotFound
from studytrack.models import User
from studytrack.services.gateway import TaskGateway
from studytrack.services.records import RecordGateway


@pytest.fixture()
def other_task_id(db, feed) -> str:
    other = User(email="other@example.com", hashed_password="x")
    db.add(other)
    db.commit()
    db.refresh(other)
    row = TaskGateway(db, other.id, feed).insert_task(
        {"title": "Their essay", "category": "homework", "priority": "medium", "progress": 0, "completed": False}
    )
    return row.id


def test_note_cannot_link_another_users_task(records: RecordGateway, other_task_id: str) -> None:
    with pytest.raises(NotFound):
        records.create_note({"title": "Borrowed", "task_id": other_task_id})
    assert records.list_notes() == []


def test_note_update_cannot_relink_to_another_users_task(records: RecordGateway, other_task_id: str) -> None:
    note = records.create_note({"title": "Mine"})
    with pytest.raises(NotFound):
        records.update_note(note.id, {"task_id": other_task_id})
    assert records.get_note(note.id).task_id is None


def test_note_links_own_task(records: RecordGateway, gateway: TaskGateway) -> None:
    row = gateway.insert_task(
        {"title": "Essay", "category": "homework", "priority": "medium", "progress": 0, "completed": False}
    )
    note = records.create_note({"title": "Outline", "task_id": row.id})
    assert [n.id for n in records.list_notes(task_id=row.id)] == [note.id]


def test_note_update_normalises_tags(records: RecordGateway) -> None:
    note = records.create_note({"title": "Cells"})
    updated = records.update_note(note.id, {"tags": [" bio ", "", "  "]})
    assert updated.tags == ["bio"]


def test_second_summary_for_same_week_returns_stored_row(records: RecordGateway) -> None:
    week = (date(2024, 3, 11), date(2024, 3, 17))
    first = records.insert_weekly_summary(*week, "Solid week.", {"completed": 3})
    second = records.insert_weekly_summary(*week, "Another take.", {"completed": 3})

    assert second.id == first.id
    assert second.summary == "Solid week."
    assert len(records.list_weekly_summaries()) == 1
