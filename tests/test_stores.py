"""
DocumentStore contract tests, run against both implementations, plus
SQL-specific retry and foreign-key behaviour.
"""

import pytest
from sqlalchemy import exc as sa_exc

from worktrack.deadline import Deadline
from worktrack.errors import DeadlineExceeded
from worktrack.schemas.entities import Project, Story, Task, User
from worktrack.store.base import StoreConflict, StoreError, TransientStoreError
from worktrack.store.sql_store import SqlDocumentStore


def test_seeded_users_are_readable(store):
    admin = store.get(User, "user-admin-01")
    assert admin.login == "admin"
    assert admin.role == "admin"
    assert admin.password_hash != "admin123"
    assert len(store.list(User)) == 3
    assert [u.id for u in store.list(User, role="devops")] == ["user-devops-01"]


def test_update_is_a_patch(store, project):
    updated = store.update(Project, project.id, {"name": "Renamed"})
    assert updated.name == "Renamed"
    assert updated.description == project.description


def test_conditional_update_mismatch_raises_and_writes_nothing(store, task):
    with pytest.raises(StoreConflict):
        store.update(Task, task.id, {"status": "done"}, expected={"status": "doing"})
    assert store.get(Task, task.id).status == "todo"


def test_conditional_update_match(store, task):
    updated = store.update(
        Task, task.id, {"status": "doing", "assigned_user_id": "user-dev-01"}, expected={"status": "todo"}
    )
    assert updated.status == "doing"


def test_update_missing_document_returns_none(store):
    assert store.update(Project, "missing", {"name": "x"}) is None


def test_delete_many_returns_existing_ids(store, tasks, story, task):
    assert store.delete_many(Task, [task.id, "missing"]) == [task.id]
    assert store.delete_many(Task, []) == []
    assert store.get(Task, task.id) is None


def test_expired_deadline_stops_before_io(store, project):
    expired = Deadline(0)
    with pytest.raises(DeadlineExceeded):
        store.get(Project, project.id, expired)
    with pytest.raises(DeadlineExceeded):
        store.delete(Project, project.id, expired)
    assert store.get(Project, project.id) is not None


def test_deadline_remaining():
    ticks = iter([100.0, 104.0, 111.0])
    deadline = Deadline(10, clock=lambda: next(ticks))
    assert deadline.remaining() == 6.0
    assert deadline.expired()
    assert Deadline.never().remaining() is None


# ── SQL only ─────────────────────────────────────────────────────────────


def test_sql_reads_retry_transient_errors(sql_session, monkeypatch):
    store = SqlDocumentStore(sql_session, backoff=0)
    store.add(Project(id="p-1", name="Retry me"))

    real_get = sql_session.get
    failures = {"left": 2}

    def flaky_get(*args, **kwargs):
        if failures["left"]:
            failures["left"] -= 1
            raise sa_exc.OperationalError("SELECT", {}, Exception("database is locked"))
        return real_get(*args, **kwargs)

    monkeypatch.setattr(sql_session, "get", flaky_get)
    assert store.get(Project, "p-1").name == "Retry me"
    assert failures["left"] == 0


def test_sql_reads_give_up_after_retries(sql_session, monkeypatch):
    store = SqlDocumentStore(sql_session, retries=2, backoff=0)

    def always_locked(*args, **kwargs):
        raise sa_exc.OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(sql_session, "get", always_locked)
    with pytest.raises(TransientStoreError):
        store.get(Project, "p-1")


def test_sql_retry_backoff_stops_at_deadline(sql_session, monkeypatch):
    store = SqlDocumentStore(sql_session, backoff=30)
    store.add(Project(id="p-1", name="Retry me"))

    real_get = sql_session.get
    failures = {"left": 1}

    def flaky_get(*args, **kwargs):
        if failures["left"]:
            failures["left"] -= 1
            raise sa_exc.OperationalError("SELECT", {}, Exception("database is locked"))
        return real_get(*args, **kwargs)

    slept = []
    monkeypatch.setattr(sql_session, "get", flaky_get)
    monkeypatch.setattr("worktrack.store.sql_store.time.sleep", slept.append)

    deadline = Deadline(2, clock=lambda: 100.0)
    assert store.get(Project, "p-1", deadline).name == "Retry me"
    assert slept == [2.0]


def test_sql_foreign_keys_reject_out_of_order_delete(sql_session):
    store = SqlDocumentStore(sql_session, backoff=0)
    store.add(Project(id="p-1", name="P"))
    store.add(Story(id="s-1", project_id="p-1", name="S"))
    store.add(Task(id="t-1", project_id="p-1", story_id="s-1", name="T"))

    with pytest.raises(StoreError):
        store.delete_many(Story, ["s-1"])
    assert store.get(Story, "s-1") is not None
