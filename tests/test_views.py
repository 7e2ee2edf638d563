# tests/test_views.py

from __future__ import annotations

from datetime import date, datetime

import pytest

from studytrack.errors import ValidationFailed
from studytrack.services import views
from studytrack.services.aggregator import enrich

from .fakes import make_row


def _task(task_id: str, **overrides):
    return enrich(make_row(task_id, **overrides))


@pytest.mark.parametrize(
    ("progress", "band"),
    [(0, views.TODO), (1, views.IN_PROGRESS), (99, views.IN_PROGRESS), (100, views.DONE)],
)
def test_band_boundaries(progress, band) -> None:
    assert views.band_for(progress) == band


def test_kanban_board_has_every_band() -> None:
    board = views.kanban_board([_task("a", progress=100, completed=True)])
    assert list(board) == [views.TODO, views.IN_PROGRESS, views.DONE]
    assert [t.id for t in board[views.DONE]] == ["a"]
    assert board[views.TODO] == []


def test_unknown_band_is_rejected() -> None:
    with pytest.raises(ValidationFailed):
        views.progress_for_band("later")


def test_filter_by_category_and_status() -> None:
    tasks = [
        _task("a", category="homework", progress=100, completed=True),
        _task("b", category="homework", progress=20),
        _task("c", category="revision", progress=100, completed=True),
    ]
    result = views.filter_tasks(tasks, category="homework", status="completed")
    assert [t.id for t in result] == ["a"]

    assert [t.id for t in views.filter_tasks(tasks, status="incomplete")] == ["b"]
    assert len(views.filter_tasks(tasks)) == 3


def test_filter_rejects_unknown_values() -> None:
    with pytest.raises(ValidationFailed):
        views.filter_tasks([], category="sports")
    with pytest.raises(ValidationFailed):
        views.filter_tasks([], status="archived")


def test_calendar_groups_by_day_and_skips_undated() -> None:
    tasks = [
        _task("a", due_date=date(2024, 3, 12)),
        _task("b", due_date=date(2024, 3, 5)),
        _task("c", due_date=date(2024, 3, 12)),
        _task("d"),
    ]
    groups = views.group_by_calendar_day(tasks)

    assert list(groups) == [date(2024, 3, 5), date(2024, 3, 12)]
    assert [t.id for t in groups[date(2024, 3, 12)]] == ["a", "c"]
    assert all(t.id != "d" for bucket in groups.values() for t in bucket)


def test_tasks_for_month_keys_by_day_number() -> None:
    tasks = [_task("a", due_date=date(2024, 3, 12)), _task("b", due_date=date(2024, 4, 1))]
    assert list(views.tasks_for_month(tasks, 2024, 3)) == [12]
    with pytest.raises(ValidationFailed):
        views.tasks_for_month(tasks, 2024, 13)


def test_timeline_flags_past_and_today() -> None:
    today = date(2024, 3, 10)
    tasks = [
        _task("a", due_date=date(2024, 3, 9)),
        _task("b", due_date=today),
        _task("c", due_date=date(2024, 3, 11)),
    ]
    groups = views.timeline(tasks, today=today)

    assert [(g.is_past, g.is_today) for g in groups] == [(True, False), (False, True), (False, False)]
    assert groups[1].label == "Sun, Mar 10, 2024"


def test_empty_category_reports_zero_average() -> None:
    tasks = [_task("a", category="homework", progress=50), _task("b", category="homework", progress=75)]
    by_category = {c.category: c for c in views.average_progress_by_category(tasks)}

    assert by_category["homework"].progress == 63
    assert by_category["homework"].count == 2
    assert by_category["projects"].progress == 0
    assert by_category["projects"].count == 0


def test_completion_breakdown_and_stats() -> None:
    tasks = [
        _task("a", progress=100, completed=True),
        _task("b", progress=40),
        _task("c", progress=0),
    ]
    assert views.completion_breakdown(tasks) == {"completed": 1, "inProgress": 1, "notStarted": 1}

    stats = views.stats(tasks)
    assert stats["total"] == 3
    assert stats["completed"] == 1
    assert stats["averageProgress"] == 47


def test_progress_trend_keeps_most_recent_oldest_first() -> None:
    tasks = [_task(str(i), created_at=datetime(2024, 3, i + 1)) for i in range(5)]
    trend = views.progress_trend(tasks, limit=3)
    assert [point["id"] for point in trend] == ["2", "3", "4"]
