"""Per-user cache of the aggregated task list.

Each store holds the latest aggregated list together with a generation
counter that moves forward on every change. Refreshes are fenced with a
request sequence: a response whose token is older than the newest issued
request is dropped instead of overwriting newer state.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from typing import Optional

from ..domain import Task
from .gateway import ChangeFeed, change_feed

logger = logging.getLogger(__name__)


class TaskListStore:
    def __init__(self, user_id: str) -> None:
        self.user_id = user_id
        self._lock = threading.Lock()
        self._tasks: tuple[Task, ...] = ()
        self._generation = 0
        self._issued = 0
        self._stale = True

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def stale(self) -> bool:
        return self._stale

    def tasks(self) -> tuple[Task, ...]:
        with self._lock:
            return self._tasks

    def get(self, task_id: str) -> Optional[Task]:
        with self._lock:
            for task in self._tasks:
                if task.id == task_id:
                    return task
        return None

    def mark_stale(self) -> None:
        with self._lock:
            self._stale = True

    # ---- fenced refresh ----

    def begin_request(self) -> int:
        with self._lock:
            self._issued += 1
            return self._issued

    def commit(self, token: int, tasks: Iterable[Task]) -> bool:
        """Install a refresh result unless a newer request was issued since."""
        with self._lock:
            if token < self._issued:
                logger.debug("Dropping stale task list user=%s token=%s latest=%s", self.user_id, token, self._issued)
                return False
            self._tasks = tuple(tasks)
            self._generation += 1
            self._stale = False
            return True

    # ---- optimistic local patches ----

    def apply_local(self, task: Task) -> tuple[Task, ...]:
        """Replace (or add) one task in place; returns the previous list for rollback."""
        with self._lock:
            previous = self._tasks
            replaced = False
            updated = []
            for existing in previous:
                if existing.id == task.id:
                    updated.append(task)
                    replaced = True
                else:
                    updated.append(existing)
            if not replaced:
                updated.insert(0, task)
            self._tasks = tuple(updated)
            self._generation += 1
            return previous

    def remove_local(self, task_id: str) -> tuple[Task, ...]:
        with self._lock:
            previous = self._tasks
            self._tasks = tuple(t for t in previous if t.id != task_id)
            if len(self._tasks) != len(previous):
                self._generation += 1
            return previous

    def restore(self, snapshot: tuple[Task, ...]) -> None:
        with self._lock:
            self._tasks = snapshot
            self._generation += 1


class StoreRegistry:
    """Holds one store per user and invalidates it on change notifications."""

    def __init__(self, feed: ChangeFeed = change_feed) -> None:
        self._lock = threading.Lock()
        self._stores: dict[str, TaskListStore] = {}
        self._unsubscribe = feed.subscribe(self._on_change)

    def get(self, user_id: str) -> TaskListStore:
        with self._lock:
            store = self._stores.get(user_id)
            if store is None:
                store = TaskListStore(user_id)
                self._stores[user_id] = store
            return store

    def clear(self) -> None:
        with self._lock:
            self._stores.clear()

    def _on_change(self, user_id: str, table: str) -> None:
        with self._lock:
            store = self._stores.get(user_id)
        if store is not None:
            store.mark_stale()
            logger.debug("Task list invalidated user=%s table=%s", user_id, table)


stores = StoreRegistry()
