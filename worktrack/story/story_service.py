# worktrack/story/story_service.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Mapping, Optional

from worktrack.deadline import Deadline
from worktrack.errors import DanglingReference, HasDependents, NotFound, ValidationError
from worktrack.schemas.entities import Project, Story, Task, User, utcnow
from worktrack.schemas.story_schema import StoryCreate
from worktrack.store.base import DocumentStore
from worktrack.task.task_service import validate_name, validate_priority, validate_status

logger = logging.getLogger("worktrack.story")

EDITABLE_FIELDS = frozenset({"name", "description", "priority", "status", "owner_id"})


class StoryService:
    """Stories carry a free-form status; only deletion is guarded."""

    def __init__(self, store: DocumentStore, clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.clock = clock

    def get(self, story_id: str, deadline: Optional[Deadline] = None) -> Story:
        story = self.store.get(Story, story_id, deadline)
        if story is None:
            raise NotFound("Story", story_id)
        return story

    def list(
        self,
        project_id: Optional[str] = None,
        status: Optional[str] = None,
        deadline: Optional[Deadline] = None,
    ) -> list[Story]:
        filters = {}
        if project_id is not None:
            filters["project_id"] = project_id
        if status is not None:
            filters["status"] = validate_status(status)
        return sorted(self.store.list(Story, deadline, **filters), key=lambda s: s.created_at)

    def create(self, data: StoryCreate, deadline: Optional[Deadline] = None) -> Story:
        if self.store.get(Project, data.project_id, deadline) is None:
            raise DanglingReference(f"Project {data.project_id} does not exist", project_id=data.project_id)
        self._check_owner(data.owner_id, deadline)

        story = Story(
            project_id=data.project_id,
            name=validate_name(data.name),
            description=data.description or "",
            priority=validate_priority(data.priority),
            status=validate_status(data.status),
            owner_id=data.owner_id,
            created_at=self.clock(),
        )
        story = self.store.add(story, deadline)
        logger.info("story_created", extra={"story_id": story.id, "project_id": story.project_id})
        return story

    def update(self, story_id: str, fields: Mapping[str, Any], deadline: Optional[Deadline] = None) -> Story:
        if "project_id" in fields:
            raise ValidationError("A story cannot be moved to another project", field="project_id")
        rejected = sorted(set(fields) - EDITABLE_FIELDS)
        if rejected:
            raise ValidationError(f"Fields cannot be edited: {', '.join(rejected)}", fields=rejected)

        story = self.get(story_id, deadline)
        changes: dict[str, Any] = {}
        if "name" in fields:
            changes["name"] = validate_name(fields["name"])
        if "description" in fields:
            changes["description"] = fields["description"] or ""
        if "priority" in fields:
            changes["priority"] = validate_priority(fields["priority"])
        if "status" in fields:
            changes["status"] = validate_status(fields["status"])
        if "owner_id" in fields:
            self._check_owner(fields["owner_id"], deadline)
            changes["owner_id"] = fields["owner_id"]

        if not changes:
            return story
        updated = self.store.update(Story, story_id, changes, deadline=deadline)
        if updated is None:
            raise NotFound("Story", story_id)
        logger.info("story_updated", extra={"story_id": story_id, "fields": sorted(changes)})
        return updated

    def delete(self, story_id: str, deadline: Optional[Deadline] = None) -> None:
        """Blocking delete: refused while any task still points at the story."""
        self.get(story_id, deadline)

        blocking = [task.id for task in self.store.list(Task, deadline, story_id=story_id)]
        if blocking:
            logger.info("story_delete_blocked", extra={"story_id": story_id, "blocking_ids": blocking})
            raise HasDependents("story", story_id, blocking)

        if not self.store.delete(Story, story_id, deadline):
            raise NotFound("Story", story_id)
        logger.info("story_deleted", extra={"story_id": story_id})

    def _check_owner(self, owner_id: Optional[str], deadline: Optional[Deadline]) -> None:
        if owner_id is not None and self.store.get(User, owner_id, deadline) is None:
            raise DanglingReference(f"User {owner_id} does not exist", owner_id=owner_id)
