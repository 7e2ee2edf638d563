"""Join raw task rows with their tags, closed time and subtasks."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Protocol

from ..domain import Subtask, Tag, Task, TaskRow
from ..errors import AggregationFailed, StudyTrackError, ValidationFailed

logger = logging.getLogger(__name__)


class TaskSource(Protocol):
    def fetch_task_rows(self) -> list[TaskRow]: ...

    def fetch_tags_by_task(self, task_ids) -> Mapping[str, Sequence[Tag]]: ...

    def fetch_time_by_task(self, task_ids) -> Mapping[str, int]: ...

    def fetch_subtasks_by_task(self, task_ids) -> Mapping[str, Sequence[Subtask]]: ...


def enrich(
    row: TaskRow,
    tags: Sequence[Tag] = (),
    total_time_spent: int = 0,
    subtasks: Sequence[Subtask] = (),
) -> Task:
    ordered = tuple(sorted(subtasks, key=lambda s: s.order_index))
    return Task(
        **{name: getattr(row, name) for name in TaskRow.__dataclass_fields__},
        tags=tuple(tags),
        subtasks=ordered,
        total_time_spent=max(0, int(total_time_spent or 0)),
    )


def aggregate(
    rows: Sequence[TaskRow],
    tags_by_task: Mapping[str, Sequence[Tag]],
    time_by_task: Mapping[str, int],
    subtasks_by_task: Mapping[str, Sequence[Subtask]],
) -> list[Task]:
    """Build one enriched task per row.

    Only ``tags``, ``subtasks`` and ``total_time_spent`` come from the
    relation maps; everything else is copied from the row. A task missing
    from a map gets an empty collection or zero.
    """
    seen: set[str] = set()
    tasks: list[Task] = []
    for row in rows:
        if row.id in seen:
            raise ValidationFailed(f"Duplicate task id in batch: {row.id}")
        seen.add(row.id)
        tasks.append(
            enrich(
                row,
                tags_by_task.get(row.id, ()),
                time_by_task.get(row.id, 0),
                subtasks_by_task.get(row.id, ()),
            )
        )
    return tasks


def load_tasks(source: TaskSource) -> list[Task]:
    """Fetch rows and all three relations, then aggregate.

    All relations must load for the batch to be returned; a single failing
    relation fails the whole aggregation.
    """
    try:
        rows = source.fetch_task_rows()
    except StudyTrackError:
        raise
    except Exception as exc:
        logger.exception("Loading task rows failed")
        raise AggregationFailed() from exc

    if not rows:
        return []

    task_ids = [row.id for row in rows]
    try:
        tags_by_task = source.fetch_tags_by_task(task_ids)
        time_by_task = source.fetch_time_by_task(task_ids)
        subtasks_by_task = source.fetch_subtasks_by_task(task_ids)
    except Exception as exc:
        logger.warning("Task relations failed to load, dropping batch of %s: %s", len(task_ids), exc)
        raise AggregationFailed() from exc

    tasks = aggregate(rows, tags_by_task, time_by_task, subtasks_by_task)
    logger.debug("Aggregated %s tasks", len(tasks))
    return tasks
