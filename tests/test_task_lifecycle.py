"""
Task state machine tests.

Tests cover:
  - assign / complete / reset transitions and their timestamps
  - failed transitions never mutate the task
  - edit whitelist and story moves
  - task creation rules
  - compare-and-swap conflicts
  - invariants after random operation sequences
"""

import random
from datetime import datetime, timedelta, timezone

import pytest

from worktrack.errors import (
    Conflict,
    DanglingReference,
    InconsistentState,
    InvalidAssignee,
    InvalidTransition,
    NotFound,
    ValidationError,
    WorkTrackError,
)
from worktrack.schemas.entities import Task, User
from worktrack.schemas.project_schema import ProjectCreate
from worktrack.schemas.story_schema import StoryCreate
from worktrack.schemas.task_schema import TaskCreate
from worktrack.task.task_service import TaskService

ADMIN_ID = "user-admin-01"
DEV_ID = "user-dev-01"
OPS_ID = "user-devops-01"

T0 = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)


class TickingClock:
    """Returns T0, T0+1min, T0+2min, ..."""

    def __init__(self, start=T0, step=timedelta(minutes=1)):
        self.now = start
        self.step = step

    def __call__(self):
        current = self.now
        self.now += self.step
        return current


def assert_task_invariants(task, store):
    if task.status == "todo":
        assert task.assigned_user_id is None
        assert task.start_date is None
        assert task.end_date is None
    elif task.status == "doing":
        assert task.assigned_user_id is not None
        assert task.start_date is not None
        assert task.end_date is None
    else:
        assert task.status == "done"
        assert task.assigned_user_id is not None
        assert task.start_date is not None
        assert task.end_date is not None
        assert task.end_date >= task.start_date

    if task.assigned_user_id is not None:
        user = store.get(User, task.assigned_user_id)
        assert user is not None
        assert user.role in ("developer", "devops")


# ═══════════════════════════════════════════════════════════════
# Creation
# ═══════════════════════════════════════════════════════════════

def test_new_task_starts_todo_without_assignment(task, story, store):
    assert task.status == "todo"
    assert task.project_id == story.project_id
    assert task.story_id == story.id
    assert task.estimated_time == 3.0
    assert_task_invariants(task, store)


def test_create_requires_existing_story(tasks):
    with pytest.raises(DanglingReference):
        tasks.create(TaskCreate(story_id="no-such-story", name="Orphan"))


def test_create_rejects_project_that_does_not_own_the_story(tasks, story, projects):
    other = projects.create(ProjectCreate(name="Other"))
    with pytest.raises(ValidationError):
        tasks.create(TaskCreate(story_id=story.id, project_id=other.id, name="Misfiled"))


def test_create_rejects_done_story(tasks, stories, story):
    stories.update(story.id, {"status": "done"})
    with pytest.raises(ValidationError):
        tasks.create(TaskCreate(story_id=story.id, name="Too late"))


@pytest.mark.parametrize("name", ["", "   "])
def test_create_rejects_blank_name(tasks, story, name):
    with pytest.raises(ValidationError):
        tasks.create(TaskCreate(story_id=story.id, name=name))


def test_create_rejects_negative_estimate(tasks, story):
    with pytest.raises(ValidationError):
        tasks.create(TaskCreate(story_id=story.id, name="Negative", estimated_time=-1))


@pytest.mark.parametrize("estimate", [float("nan"), float("inf"), float("-inf")])
def test_create_rejects_non_finite_estimate(tasks, story, estimate):
    with pytest.raises(ValidationError):
        tasks.create(TaskCreate(story_id=story.id, name="Unbounded", estimated_time=estimate))


def test_edit_rejects_non_finite_estimate(tasks, task):
    with pytest.raises(ValidationError):
        tasks.edit(task.id, {"estimated_time": float("nan")})
    assert tasks.get(task.id).estimated_time == task.estimated_time


# ═══════════════════════════════════════════════════════════════
# assign / complete / reset
# ═══════════════════════════════════════════════════════════════

def test_assign_then_complete(store, task):
    clock = TickingClock()
    service = TaskService(store, clock=clock)

    doing = service.assign(task.id, DEV_ID)
    assert doing.status == "doing"
    assert doing.assigned_user_id == DEV_ID
    assert doing.start_date == T0
    assert doing.end_date is None

    done = service.complete(task.id)
    assert done.status == "done"
    assert done.assigned_user_id == DEV_ID
    assert done.start_date == T0
    assert done.end_date == T0 + timedelta(minutes=1)
    assert done.end_date >= done.start_date


def test_complete_never_ends_before_start(store, task):
    times = iter([T0, T0 - timedelta(hours=1)])
    service = TaskService(store, clock=lambda: next(times))

    service.assign(task.id, OPS_ID)
    done = service.complete(task.id)
    assert done.end_date == done.start_date == T0


def test_assign_admin_is_rejected_and_task_stays_todo(tasks, task):
    with pytest.raises(InvalidAssignee):
        tasks.assign(task.id, ADMIN_ID)

    assert tasks.get(task.id).model_dump() == task.model_dump()


def test_assign_unknown_user_is_rejected(tasks, task):
    with pytest.raises(InvalidAssignee):
        tasks.assign(task.id, "user-nobody")
    assert tasks.get(task.id).status == "todo"


@pytest.mark.parametrize("steps", [["assign"], ["assign", "complete"]])
def test_assign_outside_todo_fails_without_mutation(tasks, task, steps):
    tasks.assign(task.id, DEV_ID)
    if "complete" in steps:
        tasks.complete(task.id)
    before = tasks.get(task.id)

    with pytest.raises(InvalidTransition):
        tasks.assign(task.id, OPS_ID)

    assert tasks.get(task.id).model_dump() == before.model_dump()


def test_complete_todo_task_fails_without_mutation(tasks, task):
    with pytest.raises(InvalidTransition):
        tasks.complete(task.id)
    assert tasks.get(task.id).model_dump() == task.model_dump()


def test_complete_done_task_fails_without_mutation(tasks, task):
    tasks.assign(task.id, DEV_ID)
    done = tasks.complete(task.id)

    with pytest.raises(InvalidTransition):
        tasks.complete(task.id)
    assert tasks.get(task.id).model_dump() == done.model_dump()


def test_complete_detects_inconsistent_doing_task(store, tasks, task):
    # a document written behind the engine's back
    store.update(Task, task.id, {"status": "doing", "assigned_user_id": None, "start_date": None})

    with pytest.raises(InconsistentState):
        tasks.complete(task.id)


@pytest.mark.parametrize("steps", [[], ["assign"], ["assign", "complete"]])
def test_reset_reopens_from_any_state(tasks, task, store, steps):
    if "assign" in steps:
        tasks.assign(task.id, DEV_ID)
    if "complete" in steps:
        tasks.complete(task.id)

    reopened = tasks.reset(task.id)
    assert reopened.status == "todo"
    assert_task_invariants(reopened, store)

    # and it can be picked up again
    assert tasks.assign(task.id, OPS_ID).assigned_user_id == OPS_ID


def test_transitions_on_missing_task_raise_not_found(tasks):
    with pytest.raises(NotFound):
        tasks.assign("missing", DEV_ID)
    with pytest.raises(NotFound):
        tasks.complete("missing")
    with pytest.raises(NotFound):
        tasks.reset("missing")


# ═══════════════════════════════════════════════════════════════
# edit
# ═══════════════════════════════════════════════════════════════

def test_edit_descriptive_fields(tasks, task):
    edited = tasks.edit(task.id, {"name": "Design login page", "priority": "high", "estimated_time": 5})
    assert edited.name == "Design login page"
    assert edited.priority == "high"
    assert edited.estimated_time == 5.0
    assert edited.status == "todo"


@pytest.mark.parametrize(
    "fields",
    [
        {"status": "done"},
        {"assigned_user_id": DEV_ID},
        {"start_date": T0},
        {"end_date": T0},
        {"project_id": "elsewhere"},
        {"name": "ok", "status": "doing"},
    ],
)
def test_edit_refuses_machine_owned_fields(tasks, task, fields):
    with pytest.raises(ValidationError):
        tasks.edit(task.id, fields)
    assert tasks.get(task.id).model_dump() == task.model_dump()


def test_edit_keeps_state_machine_fields(tasks, task):
    doing = tasks.assign(task.id, DEV_ID)
    edited = tasks.edit(task.id, {"description": "Use the design system"})
    assert edited.status == "doing"
    assert edited.assigned_user_id == DEV_ID
    assert edited.start_date == doing.start_date


def test_edit_moves_task_within_project(tasks, stories, task, project):
    second = stories.create(StoryCreate(project_id=project.id, name="Password reset"))
    moved = tasks.edit(task.id, {"story_id": second.id})
    assert moved.story_id == second.id
    assert moved.project_id == project.id


def test_edit_refuses_story_from_another_project(tasks, stories, projects, task):
    other = projects.create(ProjectCreate(name="Other"))
    foreign = stories.create(StoryCreate(project_id=other.id, name="Foreign"))
    with pytest.raises(ValidationError):
        tasks.edit(task.id, {"story_id": foreign.id})
    assert tasks.get(task.id).story_id == task.story_id


def test_edit_refuses_missing_story(tasks, task):
    with pytest.raises(DanglingReference):
        tasks.edit(task.id, {"story_id": "no-such-story"})


def test_edit_rejects_bad_values(tasks, task):
    with pytest.raises(ValidationError):
        tasks.edit(task.id, {"priority": "urgent"})
    with pytest.raises(ValidationError):
        tasks.edit(task.id, {"estimated_time": -2})
    with pytest.raises(ValidationError):
        tasks.edit(task.id, {"story_id": None})


# ═══════════════════════════════════════════════════════════════
# Conflicts
# ═══════════════════════════════════════════════════════════════

class RacingStore:
    """Lets a competing write land just before the engine's conditional write."""

    def __init__(self, inner, competing_changes):
        self.inner = inner
        self.competing_changes = competing_changes

    def __getattr__(self, name):
        return getattr(self.inner, name)

    def update(self, kind, entity_id, changes, expected=None, deadline=None):
        if expected and self.competing_changes:
            self.inner.update(kind, entity_id, self.competing_changes)
            self.competing_changes = None
        return self.inner.update(kind, entity_id, changes, expected=expected, deadline=deadline)


def test_second_assign_loses_the_race(store, task):
    racing = RacingStore(store, {"status": "doing", "assigned_user_id": OPS_ID, "start_date": T0})

    with pytest.raises(Conflict):
        TaskService(racing).assign(task.id, DEV_ID)

    stored = store.get(Task, task.id)
    assert stored.assigned_user_id == OPS_ID


def test_complete_loses_race_against_reset(store, task, tasks):
    tasks.assign(task.id, DEV_ID)
    racing = RacingStore(store, {"status": "todo", "assigned_user_id": None, "start_date": None})

    with pytest.raises(Conflict):
        TaskService(racing).complete(task.id)

    assert store.get(Task, task.id).status == "todo"


# ═══════════════════════════════════════════════════════════════
# Invariants
# ═══════════════════════════════════════════════════════════════

def test_invariants_hold_after_random_operations(store, tasks, story):
    service = TaskService(store, clock=TickingClock())
    ids = [service.create(TaskCreate(story_id=story.id, name=f"Task {n}")).id for n in range(3)]
    rng = random.Random(20261019)

    for _ in range(150):
        task_id = rng.choice(ids)
        op = rng.choice(["assign", "complete", "reset", "edit"])
        try:
            if op == "assign":
                service.assign(task_id, rng.choice([ADMIN_ID, DEV_ID, OPS_ID]))
            elif op == "edit":
                service.edit(task_id, {"name": f"Renamed {rng.randint(0, 99)}"})
            else:
                getattr(service, op)(task_id)
        except WorkTrackError:
            pass

        for current in service.list(story_id=story.id):
            assert_task_invariants(current, store)


def test_list_filters(tasks, story, task):
    second = tasks.create(TaskCreate(story_id=story.id, name="Wire up API"))
    tasks.assign(second.id, DEV_ID)

    assert [t.id for t in tasks.list(story_id=story.id, status="doing")] == [second.id]
    assert [t.id for t in tasks.list(project_id=story.project_id, status="todo")] == [task.id]
    with pytest.raises(ValidationError):
        tasks.list(status="blocked")
