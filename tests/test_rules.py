# tests/test_rules.py

from __future__ import annotations

from datetime import datetime

import pytest

from studytrack.domain import Task, TimeSession
from studytrack.services import rules

from .fakes import CREATED


def _task(**overrides) -> Task:
    fields = dict(
        id="t1",
        title="Essay",
        category="homework",
        priority="medium",
        progress=0,
        completed=False,
        created_at=CREATED,
        estimated_time=2.0,
        total_time_spent=1200,
    )
    fields.update(overrides)
    return Task(**fields)


@pytest.mark.parametrize(
    ("value", "expected"),
    [(-5, 0), (0, 0), (42, 42), (99.6, 100), (100, 100), (250, 100)],
)
def test_clamp_progress(value, expected) -> None:
    assert rules.clamp_progress(value) == expected


def test_apply_progress_keeps_completed_in_sync() -> None:
    done = rules.apply_progress(_task(progress=40), 120).task
    assert (done.progress, done.completed) == (100, True)

    back = rules.apply_progress(done, 60).task
    assert (back.progress, back.completed) == (60, False)


def test_completion_event_only_on_transition() -> None:
    first = rules.apply_progress(_task(progress=90), 100)
    assert first.completion is not None
    assert first.completion.task_id == "t1"
    assert first.completion.actual_time == 1200
    assert first.completion.estimated_time == 2.0

    again = rules.apply_progress(first.task, 100)
    assert again.completion is None


def test_toggle_marks_complete_and_forces_full_progress() -> None:
    result = rules.toggle_complete(_task(progress=30))
    assert result.task.completed is True
    assert result.task.progress == 100
    assert result.completion is not None


def test_toggle_uncomplete_leaves_progress_by_default() -> None:
    result = rules.toggle_complete(_task(progress=100, completed=True))
    assert result.task.completed is False
    assert result.task.progress == 100
    assert result.completion is None


def test_toggle_uncomplete_can_reset_progress() -> None:
    result = rules.toggle_complete(_task(progress=100, completed=True), reset_progress=True)
    assert (result.task.progress, result.task.completed) == (0, False)


def test_rules_do_not_mutate_input() -> None:
    task = _task(progress=10)
    rules.apply_progress(task, 100)
    rules.toggle_complete(task)
    assert (task.progress, task.completed) == (10, False)


@pytest.mark.parametrize(
    ("progress", "completed", "expected"),
    [
        (None, None, (0, False)),
        (100, False, (100, True)),
        (30, True, (100, True)),
        (140, None, (100, True)),
    ],
)
def test_normalize_progress_fields(progress, completed, expected) -> None:
    assert rules.normalize_progress_fields(progress, completed) == expected


def test_sum_session_durations_skips_open_sessions() -> None:
    start = datetime(2024, 3, 1, 10, 0, 0)
    end = datetime(2024, 3, 1, 11, 0, 0)
    sessions = [
        TimeSession(id="s1", task_id="t1", start_time=start, end_time=end, duration_seconds=300),
        TimeSession(id="s2", task_id="t1", start_time=start, end_time=end, duration_seconds=450),
        TimeSession(id="s3", task_id="t1", start_time=start),
    ]
    assert rules.sum_session_durations(sessions) == 750
