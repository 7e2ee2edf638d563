# tests/test_store.py

from __future__ import annotations

from studytrack.services.aggregator import enrich
from studytrack.services.gateway import ChangeFeed
from studytrack.services.store import StoreRegistry, TaskListStore

from .fakes import make_row


def test_new_store_starts_stale_and_empty() -> None:
    store = TaskListStore("u1")
    assert store.stale is True
    assert store.tasks() == ()
    assert store.generation == 0


def test_commit_installs_tasks_and_bumps_generation() -> None:
    store = TaskListStore("u1")
    task = enrich(make_row("a"))

    assert store.commit(store.begin_request(), [task]) is True
    assert store.tasks() == (task,)
    assert store.stale is False
    assert store.generation == 1


def test_out_of_order_response_is_dropped() -> None:
    store = TaskListStore("u1")
    older = store.begin_request()
    newer = store.begin_request()

    assert store.commit(newer, [enrich(make_row("new"))]) is True
    assert store.commit(older, [enrich(make_row("old"))]) is False
    assert [t.id for t in store.tasks()] == ["new"]
    assert store.generation == 1


def test_apply_local_and_restore_round_trip() -> None:
    store = TaskListStore("u1")
    original = enrich(make_row("a", progress=10))
    store.commit(store.begin_request(), [original])

    snapshot = store.apply_local(enrich(make_row("a", progress=80)))
    assert store.get("a").progress == 80

    store.restore(snapshot)
    assert store.get("a") == original


def test_apply_local_prepends_unknown_task() -> None:
    store = TaskListStore("u1")
    store.commit(store.begin_request(), [enrich(make_row("a"))])
    store.apply_local(enrich(make_row("b")))
    assert [t.id for t in store.tasks()] == ["b", "a"]


def test_remove_local_returns_snapshot() -> None:
    store = TaskListStore("u1")
    store.commit(store.begin_request(), [enrich(make_row("a")), enrich(make_row("b"))])

    snapshot = store.remove_local("a")
    assert [t.id for t in store.tasks()] == ["b"]
    assert [t.id for t in snapshot] == ["a", "b"]


def test_registry_marks_only_the_changed_user_stale() -> None:
    feed = ChangeFeed()
    registry = StoreRegistry(feed)
    mine, theirs = registry.get("u1"), registry.get("u2")
    for store in (mine, theirs):
        store.commit(store.begin_request(), [])

    feed.publish("u1", "tasks")

    assert mine.stale is True
    assert theirs.stale is False
    assert registry.get("u1") is mine


def test_failing_listener_does_not_block_others() -> None:
    feed = ChangeFeed()
    seen = []

    def broken(user_id, table):
        raise RuntimeError("boom")

    feed.subscribe(broken)
    unsubscribe = feed.subscribe(lambda user_id, table: seen.append((user_id, table)))
    feed.publish("u1", "subtasks")
    unsubscribe()
    feed.publish("u1", "tags")

    assert seen == [("u1", "subtasks")]
