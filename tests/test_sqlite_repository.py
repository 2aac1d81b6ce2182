import sqlite3
from datetime import date, datetime

import pytest

from tasklist.db import SQLiteRepository, SQLiteTagRepository, _SQLiteBase
from tasklist.models import Priority, Status
from tasklist.query import QueryCriteria, query
from tasklist.repositories import TagNameConflictError
from tasklist.schemas import TagCreate, TagUpdate, TodoCreate, TodoUpdate


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "data" / "tasklist.db")


@pytest.fixture
def repo(db_path):
    return SQLiteRepository(db_path)


@pytest.fixture
def tags(db_path):
    return SQLiteTagRepository(db_path)


class TestSQLiteRepository:
    def test_create_and_get(self, repo):
        created = repo.create(TodoCreate(title="Write report", priority=3, tags=["Work", "Q1"]))
        fetched = repo.get(created["id"])
        assert fetched == created
        assert fetched["tags"] == ["Work", "Q1"]
        assert fetched["priority"] == Priority.HIGH
        assert fetched["status"] == Status.PENDING
        assert fetched["completed_at"] is None
        assert repo.get(999) is None

    def test_created_at_override(self, repo):
        when = datetime(2025, 8, 29, 9, 0)
        created = repo.create(TodoCreate(title="Imported", status=2), created_at=when)
        assert created["created_at"] == when
        assert created["completed_at"] == when

    def test_status_updates_keep_invariant(self, repo):
        tid = repo.create(TodoCreate(title="Cycle"))["id"]
        done = repo.update(tid, TodoUpdate(status=Status.COMPLETED, completed_at="2025-03-01 18:00:00"))
        assert done["completed_at"] == datetime(2025, 3, 1, 18, 0)
        reopened = repo.update(tid, TodoUpdate(status=Status.IN_PROGRESS))
        assert reopened["status"] == Status.IN_PROGRESS
        assert reopened["completed_at"] is None

    def test_partial_update(self, repo):
        tid = repo.create(TodoCreate(title="Keep", description="notes", tags=["a"]))["id"]
        updated = repo.update(tid, TodoUpdate(priority=Priority.MEDIUM))
        assert updated["description"] == "notes"
        assert updated["tags"] == ["a"]
        assert updated["priority"] == Priority.MEDIUM
        assert repo.update(999, TodoUpdate(title="x")) is None

    def test_delete(self, repo):
        tid = repo.create(TodoCreate(title="Gone"))["id"]
        assert repo.delete(tid) is True
        assert repo.delete(tid) is False
        assert repo.all() == []

    def test_persists_across_instances(self, repo, db_path):
        repo.create(TodoCreate(title="Durable", tags=["über"]))
        again = SQLiteRepository(db_path)
        assert [t["tags"] for t in again.all()] == [["über"]]

    def test_unreadable_completion_time_is_dropped(self, repo, db_path):
        tid = repo.create(TodoCreate(title="Corrupt", status=2))["id"]
        conn = sqlite3.connect(db_path)
        conn.execute("UPDATE todos SET completed_at = 'garbage' WHERE id = ?", (tid,))
        conn.commit()
        conn.close()
        assert repo.get(tid)["completed_at"] is None
        assert query(repo.all(), QueryCriteria(start_date=date(2000, 1, 1))) == []

    def test_unreadable_tag_columns_degrade_to_empty(self, repo, db_path):
        bad = repo.create(TodoCreate(title="Corrupt", tags=["work"]))["id"]
        repo.create(TodoCreate(title="Fine", tags=["home"]))
        conn = sqlite3.connect(db_path)
        conn.execute("UPDATE todos SET tags = '[broken', image_paths = '{}' WHERE id = ?", (bad,))
        conn.commit()
        conn.close()
        fetched = repo.get(bad)
        assert fetched["tags"] == []
        assert fetched["image_paths"] == []
        assert [t["title"] for t in query(repo.all())] == ["Fine", "Corrupt"]

    def test_query_over_stored_records(self, repo):
        repo.create(TodoCreate(title="low", priority=1, tags=["b"]))
        repo.create(TodoCreate(title="high", priority=3, tags=["a"]))
        repo.create(TodoCreate(title="done", priority=3, status=2))
        assert [t["title"] for t in query(repo.all())] == ["high", "low"]


class TestSQLiteTagRepository:
    def test_create_is_idempotent_by_name(self, tags):
        first = tags.create(TagCreate(name="Work", color="#111111"))
        again = tags.create(TagCreate(name=" Work"))
        assert again == first
        assert tags.get_by_name("Work ") == first
        assert tags.get_by_name("Home") is None

    def test_update_and_conflict(self, tags):
        work = tags.create(TagCreate(name="Work"))
        home = tags.create(TagCreate(name="Home"))
        with pytest.raises(TagNameConflictError):
            tags.update(home["id"], TagUpdate(name="Work"))
        renamed = tags.update(work["id"], TagUpdate(name="Job"))
        assert renamed["name"] == "Job"
        assert tags.update(999, TagUpdate(color="#000")) is None

    def test_delete_and_all(self, tags):
        work = tags.create(TagCreate(name="Work"))
        tags.create(TagCreate(name="Home"))
        assert tags.delete(work["id"]) is True
        assert tags.delete(work["id"]) is False
        assert [t["name"] for t in tags.all()] == ["Home"]


def test_base_store_requires_table_setup(db_path):
    with pytest.raises(TypeError):
        _SQLiteBase(db_path)
