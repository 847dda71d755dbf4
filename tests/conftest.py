"""
Shared pytest fixtures for the worktrack test suite.

Provides:
    - passwords: bcrypt hasher at the minimum cost (session-scoped)
    - store: DocumentStore, parametrized over the in-memory and SQLite
      implementations, seeded with the demo users
    - sql_session: bare SQLAlchemy session on a fresh SQLite file
    - projects / stories / tasks: engine services over `store`
    - project, story, task: pre-created work items
    - settings, app, client, auth_headers: FastAPI app on SQLite,
      TestClient, and a bearer header for the seeded admin
"""

import pytest
from fastapi.testclient import TestClient

from worktrack.auth.passwords import PasswordHasher
from worktrack.config import JwtSettings, Settings
from worktrack.database import create_tables, make_engine, make_session_factory
from worktrack.main import create_app
from worktrack.project.project_service import ProjectService
from worktrack.schemas.project_schema import ProjectCreate
from worktrack.schemas.story_schema import StoryCreate
from worktrack.schemas.task_schema import TaskCreate
from worktrack.seed import seed_demo_users
from worktrack.store.memory_store import MemoryDocumentStore
from worktrack.store.sql_store import SqlDocumentStore
from worktrack.story.story_service import StoryService
from worktrack.task.task_service import TaskService

TEST_JWT_KEY = "test-signing-key-0123456789abcdef"


# ── Stores ───────────────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def passwords():
    return PasswordHasher(rounds=4)


@pytest.fixture()
def sql_session(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'store.db'}")
    create_tables(engine)
    db = make_session_factory(engine)()
    yield db
    db.close()
    engine.dispose()


@pytest.fixture(params=["memory", "sql"])
def store(request, passwords):
    """Every engine test runs once per store implementation."""
    if request.param == "memory":
        s = MemoryDocumentStore()
    else:
        s = SqlDocumentStore(request.getfixturevalue("sql_session"), backoff=0)
    seed_demo_users(s, passwords)
    return s


# ── Services & work items ────────────────────────────────────────────────


@pytest.fixture()
def projects(store):
    return ProjectService(store)


@pytest.fixture()
def stories(store):
    return StoryService(store)


@pytest.fixture()
def tasks(store):
    return TaskService(store)


@pytest.fixture()
def project(projects):
    return projects.create(ProjectCreate(name="New Project", description="Board for the login work"))


@pytest.fixture()
def story(stories, project):
    return stories.create(StoryCreate(project_id=project.id, name="User Login"))


@pytest.fixture()
def task(tasks, story):
    return tasks.create(TaskCreate(story_id=story.id, name="Design login form", estimated_time=3))


# ── App & client ─────────────────────────────────────────────────────────


@pytest.fixture()
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'api.db'}",
        jwt=JwtSettings(key=TEST_JWT_KEY),
        password_hash_rounds=4,
        request_timeout_seconds=None,
        log_level="WARNING",
    )


@pytest.fixture()
def app(settings):
    return create_app(settings)


@pytest.fixture()
def client(app):
    return TestClient(app)


@pytest.fixture()
def auth_headers(client):
    """Bearer header for the seeded admin."""
    res = client.post("/auth/login", json={"login": "admin", "password": "admin123"})
    assert res.status_code == 200
    return {"Authorization": f"Bearer {res.json()['access_token']}"}
