# worktrack/task/task_service.py
"""
Task state machine.

    todo ──assign──▶ doing ──complete──▶ done
      ▲                                   │
      └──────────────reset────────────────┘ (reset is legal from any state)

Status, assignee and the start/end dates are written only here, and only
through conditional writes keyed on the status the transition started
from. Plain edits go through `edit`, which refuses those fields.

Usage:
    service = TaskService(store)
    task = service.assign(task_id, user_id)
    task = service.complete(task_id)
"""
from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Any, Callable, Mapping, Optional

from worktrack.deadline import Deadline
from worktrack.errors import (
    Conflict,
    DanglingReference,
    InconsistentState,
    InvalidAssignee,
    InvalidTransition,
    NotFound,
    ValidationError,
)
from worktrack.schemas.entities import (
    OPEN_STATUSES,
    Priority,
    Status,
    Story,
    Task,
    User,
    utcnow,
)
from worktrack.schemas.task_schema import TaskCreate
from worktrack.store.base import DocumentStore, StoreConflict

logger = logging.getLogger("worktrack.task")

EDITABLE_FIELDS = frozenset({"name", "description", "priority", "story_id", "estimated_time"})
MACHINE_FIELDS = frozenset({"status", "assigned_user_id", "start_date", "end_date"})


def validate_name(name: Any) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("name must be a non-empty string", field="name")
    return name.strip()


def validate_priority(priority: Any) -> str:
    try:
        return Priority(priority).value
    except ValueError:
        raise ValidationError(f"priority must be one of low, medium, high (got {priority!r})", field="priority")


def validate_status(status: Any) -> str:
    try:
        return Status(status).value
    except ValueError:
        raise ValidationError(f"status must be one of todo, doing, done (got {status!r})", field="status")


def validate_estimate(estimated_time: Any) -> Optional[float]:
    if estimated_time is None:
        return None
    if isinstance(estimated_time, bool) or not isinstance(estimated_time, (int, float)):
        raise ValidationError("estimated_time must be a number", field="estimated_time")
    if not math.isfinite(estimated_time):
        raise ValidationError("estimated_time must be a finite number", field="estimated_time")
    if estimated_time < 0:
        raise ValidationError("estimated_time must not be negative", field="estimated_time")
    return float(estimated_time)


class TaskService:
    def __init__(self, store: DocumentStore, clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.clock = clock

    # ═══════════════════════════════════════════════════════════
    # Reads
    # ═══════════════════════════════════════════════════════════
    def get(self, task_id: str, deadline: Optional[Deadline] = None) -> Task:
        task = self.store.get(Task, task_id, deadline)
        if task is None:
            raise NotFound("Task", task_id)
        return task

    def list(
        self,
        project_id: Optional[str] = None,
        story_id: Optional[str] = None,
        status: Optional[str] = None,
        deadline: Optional[Deadline] = None,
    ) -> list[Task]:
        filters = {}
        if project_id is not None:
            filters["project_id"] = project_id
        if story_id is not None:
            filters["story_id"] = story_id
        if status is not None:
            filters["status"] = validate_status(status)
        tasks = self.store.list(Task, deadline, **filters)
        return sorted(tasks, key=lambda t: t.created_at)

    # ═══════════════════════════════════════════════════════════
    # Create / edit / delete
    # ═══════════════════════════════════════════════════════════
    def create(self, data: TaskCreate, deadline: Optional[Deadline] = None) -> Task:
        story = self._open_story(data.story_id, deadline)
        if data.project_id is not None and data.project_id != story.project_id:
            raise ValidationError(
                f"Story {story.id} belongs to project {story.project_id}, not {data.project_id}",
                field="project_id",
            )

        task = Task(
            project_id=story.project_id,
            story_id=story.id,
            name=validate_name(data.name),
            description=data.description or "",
            priority=validate_priority(data.priority),
            estimated_time=validate_estimate(data.estimated_time),
            created_at=self.clock(),
        )
        task = self.store.add(task, deadline)
        logger.info("task_created", extra={"task_id": task.id, "story_id": task.story_id, "project_id": task.project_id})
        return task

    def edit(self, task_id: str, fields: Mapping[str, Any], deadline: Optional[Deadline] = None) -> Task:
        """Change descriptive fields; the state machine's fields are refused."""
        rejected = sorted(set(fields) - EDITABLE_FIELDS)
        if rejected:
            if MACHINE_FIELDS.intersection(rejected):
                message = f"Fields are set only by assign/complete/reset: {', '.join(rejected)}"
            else:
                message = f"Fields cannot be edited: {', '.join(rejected)}"
            raise ValidationError(message, fields=rejected)

        task = self.get(task_id, deadline)
        changes: dict[str, Any] = {}
        if "name" in fields:
            changes["name"] = validate_name(fields["name"])
        if "description" in fields:
            changes["description"] = fields["description"] or ""
        if "priority" in fields:
            changes["priority"] = validate_priority(fields["priority"])
        if "estimated_time" in fields:
            changes["estimated_time"] = validate_estimate(fields["estimated_time"])
        if "story_id" in fields and not fields["story_id"]:
            raise ValidationError("story_id cannot be cleared", field="story_id")
        if "story_id" in fields and fields["story_id"] != task.story_id:
            story = self._open_story(fields["story_id"], deadline)
            if story.project_id != task.project_id:
                raise ValidationError(
                    f"Story {story.id} belongs to another project; a task cannot change project",
                    field="story_id",
                )
            changes["story_id"] = story.id

        if not changes:
            return task

        updated = self.store.update(Task, task_id, changes, deadline=deadline)
        if updated is None:
            raise NotFound("Task", task_id)
        logger.info("task_edited", extra={"task_id": task_id, "fields": sorted(changes)})
        return updated

    def delete(self, task_id: str, deadline: Optional[Deadline] = None) -> None:
        if not self.store.delete(Task, task_id, deadline):
            raise NotFound("Task", task_id)
        logger.info("task_deleted", extra={"task_id": task_id})

    # ═══════════════════════════════════════════════════════════
    # Transitions
    # ═══════════════════════════════════════════════════════════
    def assign(self, task_id: str, user_id: str, deadline: Optional[Deadline] = None) -> Task:
        """todo → doing, together with the assignee and the start date."""
        task = self.get(task_id, deadline)
        if task.status != Status.TODO.value:
            raise InvalidTransition(task_id, "assign", task.status)

        user = self.store.get(User, user_id, deadline)
        if user is None:
            raise InvalidAssignee(user_id, "no such user")
        if not user.is_assignable:
            raise InvalidAssignee(user_id, f"role {user.role} is not assignable")

        changes = {
            "assigned_user_id": user.id,
            "status": Status.DOING.value,
            "start_date": self.clock(),
            "end_date": None,
        }
        updated = self._transition(task_id, "assign", changes, {"status": Status.TODO.value}, deadline)
        logger.info("task_assigned", extra={"task_id": task_id, "user_id": user.id})
        return updated

    def complete(self, task_id: str, deadline: Optional[Deadline] = None) -> Task:
        """doing → done, stamping the end date."""
        task = self.get(task_id, deadline)
        if task.status != Status.DOING.value:
            raise InvalidTransition(task_id, "complete", task.status)
        if task.assigned_user_id is None or task.start_date is None:
            logger.error("task_inconsistent", extra={"task_id": task_id, "status": task.status})
            raise InconsistentState(
                f"Task {task_id} is doing without an assignee or start date", task_id=task_id
            )

        changes = {
            "status": Status.DONE.value,
            "end_date": max(self.clock(), task.start_date),
        }
        expected = {"status": Status.DOING.value, "assigned_user_id": task.assigned_user_id}
        updated = self._transition(task_id, "complete", changes, expected, deadline)
        logger.info("task_completed", extra={"task_id": task_id, "user_id": task.assigned_user_id})
        return updated

    def reset(self, task_id: str, deadline: Optional[Deadline] = None) -> Task:
        """Back to todo from any state, dropping assignee and dates."""
        changes = {
            "status": Status.TODO.value,
            "assigned_user_id": None,
            "start_date": None,
            "end_date": None,
        }
        updated = self.store.update(Task, task_id, changes, deadline=deadline)
        if updated is None:
            raise NotFound("Task", task_id)
        logger.info("task_reset", extra={"task_id": task_id})
        return updated

    # -------------------------
    # Helpers
    # -------------------------

    def _transition(
        self,
        task_id: str,
        action: str,
        changes: Mapping[str, Any],
        expected: Mapping[str, Any],
        deadline: Optional[Deadline],
    ) -> Task:
        try:
            updated = self.store.update(Task, task_id, changes, expected=expected, deadline=deadline)
        except StoreConflict:
            logger.warning("task_transition_conflict", extra={"task_id": task_id, "action": action})
            raise Conflict(f"Task {task_id} changed while trying to {action}", task_id=task_id)
        if updated is None:
            raise NotFound("Task", task_id)
        return updated

    def _open_story(self, story_id: str, deadline: Optional[Deadline]) -> Story:
        story = self.store.get(Story, story_id, deadline)
        if story is None:
            raise DanglingReference(f"Story {story_id} does not exist", story_id=story_id)
        if story.status not in OPEN_STATUSES:
            raise ValidationError(f"Story {story_id} is done; tasks can only be added to open stories", field="story_id")
        return story
