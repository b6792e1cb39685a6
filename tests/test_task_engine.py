"""Tests for the task engine (task_engine/engine.py) and store (task_engine/store.py)."""

from __future__ import annotations

import threading
from pathlib import Path

import pytest
import yaml

from taskboard.task_engine.engine import TaskEngine
from taskboard.task_engine.model import Task, TaskView
from taskboard.task_engine.store import TaskStore


@pytest.fixture
def state_dir(tmp_path: Path) -> Path:
    d = tmp_path / ".taskboard"
    d.mkdir()
    return d


@pytest.fixture
def engine(state_dir: Path) -> TaskEngine:
    return TaskEngine(state_dir)


@pytest.fixture
def store(state_dir: Path) -> TaskStore:
    return TaskStore(state_dir)


def _create(engine: TaskEngine, title: str = "Write spec", group: int = 1) -> Task:
    return engine.create_task(title=title, description="Draft doc", persona="Engineer", group=group)


# ---------------------------------------------------------------------------
# Store tests
# ---------------------------------------------------------------------------

class TestTaskStore:
    def test_empty_read(self, store: TaskStore) -> None:
        assert store.read_snapshot() == []

    def test_add_assigns_sequential_ids(self, store: TaskStore) -> None:
        with store.transaction() as tx:
            a = tx.add(Task(title="First"))
            b = tx.add(Task(title="Second"))
        assert (a.id, b.id) == (1, 2)

        tasks = store.read_snapshot()
        assert [t.id for t in tasks] == [1, 2]
        assert tasks[0].title == "First"

    def test_duplicate_add_raises(self, store: TaskStore) -> None:
        with store.transaction() as tx:
            tx.add(Task(id=1, title="First"))
            with pytest.raises(ValueError, match="already exists"):
                tx.add(Task(id=1, title="Duplicate"))

    def test_get_one(self, store: TaskStore) -> None:
        with store.transaction() as tx:
            tx.add(Task(title="Test"))
        t = store.get_one(1)
        assert t is not None
        assert t.title == "Test"
        assert store.get_one(42) is None

    def test_remove(self, store: TaskStore) -> None:
        with store.transaction() as tx:
            tx.add(Task(title="A"))
            tx.add(Task(title="B"))
        with store.transaction() as tx:
            assert tx.remove(1) is True
            assert tx.remove(1) is False
            assert tx.get(2) is not None
        assert [t.id for t in store.read_snapshot()] == [2]

    def test_ids_not_reused_after_delete(self, store: TaskStore) -> None:
        with store.transaction() as tx:
            tx.add(Task(title="A"))
            tx.add(Task(title="B"))
        with store.transaction() as tx:
            tx.remove(2)
        with store.transaction() as tx:
            c = tx.add(Task(title="C"))
        assert c.id == 3

    def test_clean_transaction_does_not_write(self, store: TaskStore, state_dir: Path) -> None:
        with store.transaction() as tx:
            tx.find()
        assert not (state_dir / "tasks.yaml").exists()

    def test_file_format(self, store: TaskStore, state_dir: Path) -> None:
        with store.transaction() as tx:
            tx.add(Task(title="A", persona="Engineer", group=3))
        data = yaml.safe_load((state_dir / "tasks.yaml").read_text(encoding="utf-8"))
        assert data["version"] == 1
        assert data["next_id"] == 2
        assert data["tasks"][0]["persona"] == "Engineer"

    def test_next_id_recovers_from_stale_counter(self, state_dir: Path, store: TaskStore) -> None:
        (state_dir / "tasks.yaml").write_text(
            yaml.safe_dump({"version": 1, "next_id": 1, "tasks": [{"id": 5, "title": "Old"}]}),
            encoding="utf-8",
        )
        with store.transaction() as tx:
            t = tx.add(Task(title="New"))
        assert t.id == 6

    def test_garbage_file_reads_as_empty(self, state_dir: Path, store: TaskStore) -> None:
        (state_dir / "tasks.yaml").write_text("- just\n- a list\n", encoding="utf-8")
        assert store.read_snapshot() == []

    def test_concurrent_adds_get_unique_ids(self, store: TaskStore) -> None:
        errors: list[Exception] = []

        def worker() -> None:
            try:
                for _ in range(5):
                    with store.transaction() as tx:
                        tx.add(Task(title="T"))
            except Exception as exc:  # pragma: no cover - surfaced below
                errors.append(exc)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        ids = [t.id for t in store.read_snapshot()]
        assert len(ids) == 20
        assert len(set(ids)) == 20


# ---------------------------------------------------------------------------
# Engine tests
# ---------------------------------------------------------------------------

class TestEngineCRUD:
    def test_create_returns_id_and_active(self, engine: TaskEngine) -> None:
        t = _create(engine)
        assert t.id == 1
        assert t.completed is False
        assert [x.id for x in engine.list_tasks("all")] == [1]

    def test_created_ids_unique(self, engine: TaskEngine) -> None:
        ids = [_create(engine, title=f"T{i}").id for i in range(5)]
        assert len(set(ids)) == 5

    @pytest.mark.parametrize("field", ["title", "description", "persona"])
    def test_create_requires_non_empty(self, engine: TaskEngine, field: str) -> None:
        kwargs = {"title": "T", "description": "D", "persona": "P", "group": 1, field: ""}
        with pytest.raises(ValueError, match=field):
            engine.create_task(**kwargs)
        assert engine.list_tasks() == []

    def test_get_task(self, engine: TaskEngine) -> None:
        t = _create(engine)
        got = engine.get_task(t.id)
        assert got is not None and got.title == "Write spec"
        assert engine.get_task(999) is None

    def test_update_changes_only_given_fields(self, engine: TaskEngine) -> None:
        t = _create(engine)
        updated = engine.update_task(t.id, {"title": "Edited", "id": 50, "completed": True})
        assert updated is not None
        assert updated.id == t.id
        assert updated.title == "Edited"
        assert updated.description == "Draft doc"
        assert updated.completed is False

    def test_update_unknown(self, engine: TaskEngine) -> None:
        assert engine.update_task(99, {"title": "X"}) is None

    def test_update_without_editable_fields(self, engine: TaskEngine) -> None:
        t = _create(engine)
        with pytest.raises(ValueError, match="No editable fields"):
            engine.update_task(t.id, {"completed": True})

    def test_update_rejects_empty_title(self, engine: TaskEngine) -> None:
        t = _create(engine)
        with pytest.raises(ValueError, match="title"):
            engine.update_task(t.id, {"title": ""})

    def test_complete_moves_between_partitions(self, engine: TaskEngine) -> None:
        t = _create(engine)
        before = engine.get_task(t.id)
        done = engine.complete_task(t.id)
        assert done is not None and done.completed is True
        assert [x.id for x in engine.list_tasks(TaskView.ACTIVE)] == []
        assert [x.id for x in engine.list_tasks(TaskView.COMPLETED)] == [t.id]
        assert (done.title, done.description, done.persona, done.group) == (
            before.title, before.description, before.persona, before.group,
        )

    def test_complete_twice_is_noop(self, engine: TaskEngine) -> None:
        t = _create(engine)
        first = engine.complete_task(t.id)
        second = engine.complete_task(t.id)
        assert second is not None
        assert second.completed_at == first.completed_at

    def test_complete_unknown(self, engine: TaskEngine) -> None:
        assert engine.complete_task(99) is None

    def test_delete_removes_from_every_view(self, engine: TaskEngine) -> None:
        a = _create(engine, "A")
        b = _create(engine, "B")
        engine.complete_task(b.id)
        assert engine.delete_task(b.id) is True
        assert engine.delete_task(b.id) is False
        views = engine.get_views()
        for tasks in views.values():
            assert b.id not in [t.id for t in tasks]
        assert [t.id for t in views["all"]] == [a.id]

    def test_partition_invariant(self, engine: TaskEngine) -> None:
        for i in range(6):
            t = _create(engine, f"T{i}")
            if i % 2:
                engine.complete_task(t.id)
        views = engine.get_views()
        active = {t.id for t in views["active"]}
        completed = {t.id for t in views["completed"]}
        assert active.isdisjoint(completed)
        assert active | completed == {t.id for t in views["all"]}
        assert all(not t.completed for t in views["active"])
        assert all(t.completed for t in views["completed"])

    def test_list_rejects_unknown_view(self, engine: TaskEngine) -> None:
        with pytest.raises(ValueError):
            engine.list_tasks("archived")


class TestEngineEvents:
    def test_events_recorded(self, engine: TaskEngine) -> None:
        t = _create(engine)
        engine.update_task(t.id, {"persona": "Reviewer"})
        engine.complete_task(t.id)
        engine.delete_task(t.id)
        types = [e["type"] for e in engine.get_recent_events()]
        assert types == ["task.created", "task.updated", "task.completed", "task.deleted"]

    def test_noop_update_not_recorded(self, engine: TaskEngine) -> None:
        t = _create(engine)
        engine.update_task(t.id, {"title": "Write spec"})
        assert [e["type"] for e in engine.get_recent_events()] == ["task.created"]

    def test_task_events_filter_and_limit(self, engine: TaskEngine) -> None:
        a = _create(engine, "A")
        b = _create(engine, "B")
        engine.complete_task(a.id)
        events = engine.get_task_events(a.id)
        assert [e["type"] for e in events] == ["task.created", "task.completed"]
        assert all(e["task_id"] == a.id for e in events)
        assert len(engine.get_recent_events(limit=1)) == 1
        assert engine.get_recent_events(limit=0) == []
        assert [e["task_id"] for e in engine.get_task_events(b.id)] == [b.id]

    def test_no_log_yet(self, engine: TaskEngine) -> None:
        assert engine.get_recent_events() == []

    def test_failed_save_records_no_event(self, engine: TaskEngine, monkeypatch: pytest.MonkeyPatch) -> None:
        t = _create(engine)

        def broken_save(*args, **kwargs) -> None:
            raise OSError("disk full")

        monkeypatch.setattr("taskboard.task_engine.store._save_raw", broken_save)
        with pytest.raises(OSError):
            _create(engine, "Lost")
        with pytest.raises(OSError):
            engine.complete_task(t.id)
        with pytest.raises(OSError):
            engine.delete_task(t.id)
        assert [e["type"] for e in engine.get_recent_events()] == ["task.created"]
        assert engine.get_task(t.id).completed is False
