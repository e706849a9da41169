import sqlite3
from datetime import datetime

import mongomock
import pytest
from bson import ObjectId

from src.lists_api.db import SQLiteListStore
from src.lists_api.errors import ConflictError, NotFoundError, ValidationError
from src.lists_api.mongo import MongoListStore
from src.lists_api.repositories import InMemoryListStore
from src.lists_api.services import TaskOrderingService


@pytest.fixture(params=["memory", "sqlite", "mongo"])
def store(request, tmp_path):
    """Every service test runs against each store backend; mongo uses an in-process mock client."""
    if request.param == "sqlite":
        return SQLiteListStore(str(tmp_path / "todos.db"))
    if request.param == "mongo":
        return MongoListStore("mongodb://localhost", "todos_test", client=mongomock.MongoClient())
    return InMemoryListStore()


@pytest.fixture()
def service(store) -> TaskOrderingService:
    return TaskOrderingService(store)


def seed(service: TaskOrderingService, *texts):
    todo_list = service.create_list("Seeded")
    tasks = [service.add_task(todo_list["id"], t) for t in texts]
    return todo_list, tasks


class TestListOperations:
    def test_create_list_validates_name(self, service):
        for bad in (None, "", "   "):
            with pytest.raises(ValidationError):
                service.create_list(bad)

    def test_create_list_starts_empty(self, service):
        created = service.create_list("Groceries")
        assert created["name"] == "Groceries"
        assert created["tasks"] == []
        assert created["version"] == 1

    def test_list_lists_embeds_tasks(self, service):
        first, tasks = seed(service, "A", "B")
        second = service.create_list("Empty")

        by_id = {item["id"]: item for item in service.list_lists()}
        assert [t["id"] for t in by_id[first["id"]]["tasks"]] == [t["id"] for t in tasks]
        assert by_id[second["id"]]["tasks"] == []

    def test_rename_list_has_no_emptiness_check(self, service):
        created = service.create_list("Named")
        renamed = service.rename_list(created["id"], "")
        assert renamed["name"] == ""

    def test_rename_missing_list(self, service):
        with pytest.raises(NotFoundError):
            service.rename_list("missing", "x")

    def test_delete_list_cascades_to_tasks(self, service):
        todo_list, tasks = seed(service, "A", "B")
        service.delete_list(todo_list["id"])

        for task in tasks:
            with pytest.raises(NotFoundError):
                service.toggle_task(todo_list["id"], task["id"])
        with pytest.raises(NotFoundError):
            service.delete_list(todo_list["id"])


class TestTaskOperations:
    def test_add_task_to_missing_list(self, service):
        with pytest.raises(NotFoundError):
            service.add_task("missing", "Milk")

    def test_add_task_appends_exactly_one(self, service):
        todo_list, _ = seed(service, "A")
        task = service.add_task(todo_list["id"], "Milk")

        assert task["completed"] is False
        assert task["order"] == 0
        tasks = service.get_list(todo_list["id"])["tasks"]
        assert len(tasks) == 2
        assert tasks[-1]["id"] == task["id"]

    def test_add_task_validates_text(self, service):
        todo_list = service.create_list("L")
        with pytest.raises(ValidationError):
            service.add_task(todo_list["id"], "")
        assert service.get_list(todo_list["id"])["tasks"] == []

    def test_toggle_twice(self, service):
        todo_list, (task,) = seed(service, "A")
        once = service.toggle_task(todo_list["id"], task["id"])
        twice = service.toggle_task(todo_list["id"], task["id"])
        assert once["completed"] is True
        assert twice["completed"] is False
        assert twice["updated_at"] >= task["updated_at"]

    def test_rename_task(self, service):
        todo_list, (task,) = seed(service, "A")
        with pytest.raises(ValidationError):
            service.rename_task(todo_list["id"], task["id"], " \t ")
        renamed = service.rename_task(todo_list["id"], task["id"], "  Oat milk ")
        assert renamed["text"] == "Oat milk"

    def test_rename_validation_precedes_lookup(self, service):
        with pytest.raises(ValidationError):
            service.rename_task("missing", "missing", "")

    def test_delete_task(self, service):
        todo_list, (a, b) = seed(service, "A", "B")
        service.delete_task(todo_list["id"], a["id"])
        assert [t["id"] for t in service.get_list(todo_list["id"])["tasks"]] == [b["id"]]
        with pytest.raises(NotFoundError):
            service.delete_task(todo_list["id"], a["id"])


class TestReorder:
    def test_reorder_drops_omitted(self, service):
        todo_list, (a, b, c) = seed(service, "A", "B", "C")
        result = service.reorder_tasks(todo_list["id"], [c["id"], a["id"]])

        assert [(t["id"], t["order"]) for t in result] == [(c["id"], 0), (a["id"], 1)]
        persisted = service.get_list(todo_list["id"])["tasks"]
        assert [t["id"] for t in persisted] == [c["id"], a["id"]]
        assert b["id"] not in {t["id"] for t in persisted}

    def test_reorder_skips_unknown_ids(self, service):
        todo_list, (a, b) = seed(service, "A", "B")
        result = service.reorder_tasks(todo_list["id"], [a["id"], "bogus", b["id"]])
        assert [(t["id"], t["order"]) for t in result] == [(a["id"], 0), (b["id"], 1)]

    def test_reorder_keeps_first_duplicate(self, service):
        todo_list, (a, b) = seed(service, "A", "B")
        result = service.reorder_tasks(todo_list["id"], [b["id"], a["id"], b["id"]])
        assert [(t["id"], t["order"]) for t in result] == [(b["id"], 0), (a["id"], 1)]

    def test_reorder_preserves_task_fields(self, service):
        todo_list, (a, b) = seed(service, "A", "B")
        service.toggle_task(todo_list["id"], b["id"])
        result = service.reorder_tasks(todo_list["id"], [b["id"], a["id"]])
        assert result[0]["completed"] is True
        assert result[0]["text"] == "B"
        assert result[0]["created_at"] == b["created_at"]

    def test_empty_reorder_clears_list(self, service):
        todo_list, _ = seed(service, "A", "B")
        assert service.reorder_tasks(todo_list["id"], []) == []
        assert service.get_list(todo_list["id"])["tasks"] == []

    def test_reorder_missing_list(self, service):
        with pytest.raises(NotFoundError):
            service.reorder_tasks("missing", ["x"])


class TestStoreSemantics:
    def test_stale_save_conflicts(self, store):
        created = store.create("Contended")
        first = store.get(created["id"])
        second = store.get(created["id"])

        first["name"] = "First writer"
        saved = store.save(first)
        assert saved["version"] == created["version"] + 1

        second["name"] = "Second writer"
        with pytest.raises(ConflictError):
            store.save(second)
        assert store.get(created["id"])["name"] == "First writer"

    def test_save_deleted_list(self, store):
        created = store.create("Gone")
        store.delete(created["id"])
        with pytest.raises(NotFoundError):
            store.save(created)

    def test_sequence_is_independent_of_order_field(self, store):
        service = TaskOrderingService(store)
        todo_list, (a, b, c) = seed(service, "A", "B", "C")
        # All tasks are appended with order 0; the stored sequence still holds insertion order
        tasks = store.get(todo_list["id"])["tasks"]
        assert [t["id"] for t in tasks] == [a["id"], b["id"], c["id"]]
        assert [t["order"] for t in tasks] == [0, 0, 0]

    def test_rename_without_name_keeps_name(self, store):
        created = store.create("Keep")
        renamed = store.rename(created["id"], None)
        assert renamed["name"] == "Keep"
        assert renamed["version"] == created["version"] + 1

    def test_returned_aggregates_are_detached(self, store):
        created = store.create("Detached")
        loaded = store.get(created["id"])
        loaded["name"] = "Changed locally"
        assert store.get(created["id"])["name"] == "Detached"

    def test_delete_reports_missing(self, store):
        assert store.delete("missing") is False


def test_sqlite_delete_removes_task_rows(tmp_path):
    db_path = tmp_path / "todos.db"
    service = TaskOrderingService(SQLiteListStore(str(db_path)))
    todo_list, _ = seed(service, "A", "B")
    service.delete_list(todo_list["id"])

    conn = sqlite3.connect(str(db_path))
    try:
        (count,) = conn.execute("SELECT COUNT(*) FROM tasks").fetchone()
    finally:
        conn.close()
    assert count == 0


def test_sqlite_store_survives_reopen(tmp_path):
    db_path = str(tmp_path / "todos.db")
    service = TaskOrderingService(SQLiteListStore(db_path))
    todo_list, (a, b) = seed(service, "A", "B")
    service.reorder_tasks(todo_list["id"], [b["id"], a["id"]])

    reopened = SQLiteListStore(db_path).get(todo_list["id"])
    assert [(t["id"], t["order"]) for t in reopened["tasks"]] == [(b["id"], 0), (a["id"], 1)]


class TestMongoLegacyDocuments:
    """Lists written by the earlier Mongoose app: camelCase timestamps, no version field."""

    @pytest.fixture()
    def legacy(self):
        client = mongomock.MongoClient()
        store = MongoListStore("mongodb://localhost", "todos_test", client=client)
        created = datetime(2024, 5, 1, 9, 30)
        task_id = ObjectId()
        list_id = client["todos_test"]["lists"].insert_one(
            {
                "name": "Imported",
                "tasks": [
                    {
                        "_id": task_id,
                        "text": "Bread",
                        "completed": False,
                        "order": 0,
                        "createdAt": created,
                        "updatedAt": created,
                    }
                ],
                "createdAt": created,
                "updatedAt": created,
                "__v": 0,
            }
        ).inserted_id
        return store, str(list_id), str(task_id), created

    def test_reads_camel_case_timestamps(self, legacy):
        store, list_id, task_id, created = legacy
        loaded = store.get(list_id)
        assert loaded["version"] == 1
        assert loaded["created_at"] == created
        assert loaded["tasks"][0]["id"] == task_id
        assert loaded["tasks"][0]["updated_at"] == created

    def test_unversioned_list_accepts_save(self, legacy):
        store, list_id, task_id, created = legacy
        service = TaskOrderingService(store)
        toggled = service.toggle_task(list_id, task_id)
        assert toggled["completed"] is True

        saved = store.get(list_id)
        assert saved["version"] == 2
        assert saved["created_at"] == created

    def test_stale_save_of_unversioned_list_conflicts(self, legacy):
        store, list_id, _, _ = legacy
        first = store.get(list_id)
        second = store.get(list_id)
        store.save(first)
        with pytest.raises(ConflictError):
            store.save(second)
