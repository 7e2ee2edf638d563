# tests/test_facade.py

from __future__ import annotations

from datetime import date, datetime
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from studytrack.errors import NotFound, UpstreamUnavailable, ValidationFailed
from studytrack.models import CompletionHistory
from studytrack.services.aggregator import enrich
from studytrack.services.facade import TaskService, validate_task_fields
from studytrack.services.store import TaskListStore

from .fakes import make_row


def _create(service: TaskService, **fields):
    data = {"title": "Essay draft", "category": "homework", "estimated_time": 2}
    data.update(fields)
    return service.create_task(data)


def test_create_normalises_derived_fields(service: TaskService) -> None:
    task = _create(service, progress=100)
    assert task.completed is True
    assert task.priority == "medium"
    assert task.tags == ()
    assert service.list_tasks()[0].id == task.id


def test_completion_history_written_once(service: TaskService) -> None:
    task = _create(service, progress=40)

    service.set_progress(task.id, 100)
    service.set_progress(task.id, 100)

    history = service.completion_history(task.id)
    assert len(history) == 1
    assert history[0].task_title == "Essay draft"


def test_move_to_done_band_completes_task(service: TaskService) -> None:
    task = _create(service, progress=73)
    moved = service.move_to_band(task.id, "done")
    assert (moved.progress, moved.completed) == (100, True)


def test_move_to_todo_band_resets_progress(service: TaskService) -> None:
    task = _create(service, progress=73)
    moved = service.move_to_band(task.id, "todo")
    assert (moved.progress, moved.completed) == (0, False)


def test_toggle_back_keeps_progress_by_default(service: TaskService) -> None:
    task = _create(service)
    done = service.toggle_complete(task.id)
    undone = service.toggle_complete(task.id)

    assert (done.progress, done.completed) == (100, True)
    assert (undone.progress, undone.completed) == (100, False)


def test_update_ignores_immutable_fields(service: TaskService) -> None:
    task = _create(service)
    updated = service.update_task(
        task.id,
        {"id": "other", "created_at": datetime(2000, 1, 1), "title": "Essay final", "progress": 55},
    )
    assert updated.id == task.id
    assert updated.created_at == task.created_at
    assert updated.title == "Essay final"
    assert updated.progress == 55


def test_update_completed_flag_goes_through_toggle(service: TaskService) -> None:
    task = _create(service, progress=20)
    updated = service.update_task(task.id, {"completed": True})
    assert (updated.progress, updated.completed) == (100, True)
    assert len(service.completion_history(task.id)) == 1


def test_delete_is_idempotent(service: TaskService) -> None:
    task = _create(service)
    assert service.delete_task(task.id) is True
    assert service.delete_task(task.id) is False
    assert service.list_tasks() == []


def test_unknown_task_raises_not_found(service: TaskService) -> None:
    with pytest.raises(NotFound):
        service.set_progress("missing", 10)


def test_relations_show_up_in_aggregate(service: TaskService) -> None:
    task = _create(service)
    tag = service.create_tag("math")
    service.attach_tag(task.id, tag.id)
    service.add_subtask(task.id, "Outline")
    service.add_subtask(task.id, "Draft")
    session = service.start_timer(task.id)
    service.stop_timer(session.id, 300)
    service.start_timer(task.id)

    loaded = service.get_task(task.id)
    assert [t.name for t in loaded.tags] == ["math"]
    assert [s.title for s in loaded.subtasks] == ["Outline", "Draft"]
    assert loaded.total_time_spent == 300


def test_empty_title_rejected_before_any_write() -> None:
    gateway = MagicMock()
    service = TaskService(gateway, TaskListStore("u1"))

    with pytest.raises(ValidationFailed):
        service.create_task({"title": "   ", "category": "homework"})
    gateway.insert_task.assert_not_called()


def test_failed_write_restores_previous_list() -> None:
    original = enrich(make_row("a", progress=10))
    store = TaskListStore("u1")
    store.commit(store.begin_request(), [original])

    gateway = MagicMock()
    gateway.update_task.side_effect = UpstreamUnavailable("Failed to save changes")
    service = TaskService(gateway, store)

    with pytest.raises(UpstreamUnavailable):
        service.set_progress("a", 90)
    assert store.tasks() == (original,)
    gateway.update_task.assert_called_once()


def test_update_with_progress_and_uncompleted_flag_keeps_fields_consistent(service: TaskService) -> None:
    task = _create(service, progress=40)
    updated = service.update_task(task.id, {"progress": 100, "completed": False})

    assert (updated.progress, updated.completed) == (100, True)
    assert len(service.completion_history(task.id)) == 1


def test_update_with_completed_flag_overrides_partial_progress(service: TaskService) -> None:
    task = _create(service, progress=10)
    updated = service.update_task(task.id, {"progress": 50, "completed": True})

    assert (updated.progress, updated.completed) == (100, True)
    assert len(service.completion_history(task.id)) == 1


def test_update_of_finished_task_adds_no_history(service: TaskService) -> None:
    task = _create(service, progress=40)
    service.set_progress(task.id, 100)
    service.update_task(task.id, {"progress": 100, "completed": True, "title": "Essay final"})

    assert len(service.completion_history(task.id)) == 1


def test_update_lowering_progress_reopens_task(service: TaskService) -> None:
    task = _create(service, progress=100)
    updated = service.update_task(task.id, {"progress": 60, "completed": False})

    assert (updated.progress, updated.completed) == (60, False)
    assert service.completion_history(task.id) == []


def test_failed_history_write_leaves_task_unchanged(service: TaskService, db) -> None:
    task = _create(service, progress=40)
    real_commit = db.commit

    def commit() -> None:
        if any(isinstance(obj, CompletionHistory) for obj in db.new):
            raise OperationalError("INSERT INTO task_completion_history", {}, Exception("disk I/O error"))
        real_commit()

    with patch.object(db, "commit", side_effect=commit):
        with pytest.raises(UpstreamUnavailable):
            service.set_progress(task.id, 100)

    stored = {row.id: row for row in service.gateway.fetch_task_rows()}[task.id]
    assert (stored.progress, stored.completed) == (40, False)
    assert service.completion_history(task.id) == []
    assert service.get_task(task.id).progress == 40

    # The transition is still open, so a retry records it.
    service.set_progress(task.id, 100)
    assert len(service.completion_history(task.id)) == 1


@pytest.mark.parametrize(
    "data",
    [
        {"title": "x", "category": "sports"},
        {"title": "x", "category": "homework", "priority": "urgent"},
        {"title": "x", "category": "homework", "estimated_time": 0},
        {"title": "x", "category": "homework", "due_date": "next tuesday"},
        {"title": "x", "category": "homework", "due_date": "2024-03-12", "recurring_end_date": "2024-03-01"},
        {"title": "x"},
    ],
)
def test_validate_task_fields_rejects_bad_input(data) -> None:
    with pytest.raises(ValidationFailed):
        validate_task_fields(data, creating=True)


def test_validate_task_fields_parses_dates() -> None:
    fields = validate_task_fields(
        {"title": " Read ", "category": "revision", "due_date": "2024-03-12T10:00:00", "description": "  "},
        creating=True,
    )
    assert fields["title"] == "Read"
    assert fields["due_date"] == date(2024, 3, 12)
    assert fields["description"] is None
