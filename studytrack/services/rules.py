"""Derived-state rules shared by every mutation path.

The forward invariant always holds after a rule runs:
``completed`` implies ``progress == 100`` and ``progress == 100`` implies
``completed``. The server write path and the optimistic in-memory path
both go through these functions so they cannot disagree.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

from ..domain import CompletionEvent, RuleResult, Task, TimeSession

MIN_PROGRESS = 0
MAX_PROGRESS = 100


def clamp_progress(value: float | int) -> int:
    return max(MIN_PROGRESS, min(MAX_PROGRESS, int(round(value))))


def _completion_event(task: Task) -> CompletionEvent:
    return CompletionEvent(
        task_id=task.id,
        task_title=task.title,
        estimated_time=task.estimated_time,
        actual_time=task.total_time_spent,
    )


def apply_progress(task: Task, new_progress: float | int) -> RuleResult:
    progress = clamp_progress(new_progress)
    completed = progress == MAX_PROGRESS
    updated = replace(task, progress=progress, completed=completed)
    event = _completion_event(updated) if completed and not task.completed else None
    return RuleResult(task=updated, completion=event)


def toggle_complete(task: Task, *, reset_progress: bool = False) -> RuleResult:
    """Flip ``completed``.

    Marking complete forces progress to 100. Marking incomplete leaves
    progress untouched unless ``reset_progress`` is set, in which case a
    task sitting at 100 drops back to 0 so the two fields agree again.
    """
    if not task.completed:
        updated = replace(task, completed=True, progress=MAX_PROGRESS)
        return RuleResult(task=updated, completion=_completion_event(updated))

    progress = task.progress
    if reset_progress and progress == MAX_PROGRESS:
        progress = MIN_PROGRESS
    return RuleResult(task=replace(task, completed=False, progress=progress))


def completion_between(before: Task, after: Task) -> CompletionEvent | None:
    """History event when a change takes a task from incomplete to complete."""
    if after.completed and not before.completed:
        return _completion_event(after)
    return None


def normalize_progress_fields(progress: float | int | None, completed: bool | None) -> tuple[int, bool]:
    """Reconcile progress/completed supplied together on create or update."""
    value = clamp_progress(progress if progress is not None else MIN_PROGRESS)
    if completed:
        return MAX_PROGRESS, True
    return value, value == MAX_PROGRESS


def sum_session_durations(sessions: Iterable[TimeSession]) -> int:
    total = 0
    for session in sessions:
        if session.end_time is None or not session.duration_seconds:
            continue
        total += max(0, int(session.duration_seconds))
    return total
