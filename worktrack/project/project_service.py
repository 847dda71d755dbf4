# worktrack/project/project_service.py
"""
Projects and the cascading project delete.

delete() removes, in this order and one batch per level:
  1. every task of the project (repeated until none are left)
  2. every story of the project
  3. the project itself

Nothing is rolled back if a step fails; the error reports what was
already removed.
"""
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from worktrack.deadline import Deadline
from worktrack.errors import CascadeDeleteFailed, DeadlineExceeded, NotFound, ValidationError
from worktrack.schemas.entities import Project, Story, Task
from worktrack.schemas.project_schema import ProjectCreate
from worktrack.store.base import DocumentStore, StoreError
from worktrack.task.task_service import validate_name

logger = logging.getLogger("worktrack.project")

EDITABLE_FIELDS = frozenset({"name", "description"})

# tasks created under the project while its tasks are being removed are
# picked up by another sweep, up to this many
MAX_TASK_SWEEPS = 3


class ProjectService:
    def __init__(self, store: DocumentStore):
        self.store = store

    def get(self, project_id: str, deadline: Optional[Deadline] = None) -> Project:
        project = self.store.get(Project, project_id, deadline)
        if project is None:
            raise NotFound("Project", project_id)
        return project

    def list(self, deadline: Optional[Deadline] = None) -> list[Project]:
        return sorted(self.store.list(Project, deadline), key=lambda p: p.name.casefold())

    def create(self, data: ProjectCreate, deadline: Optional[Deadline] = None) -> Project:
        project = Project(name=validate_name(data.name), description=data.description or "")
        project = self.store.add(project, deadline)
        logger.info("project_created", extra={"project_id": project.id})
        return project

    def update(self, project_id: str, fields: Mapping[str, Any], deadline: Optional[Deadline] = None) -> Project:
        rejected = sorted(set(fields) - EDITABLE_FIELDS)
        if rejected:
            raise ValidationError(f"Fields cannot be edited: {', '.join(rejected)}", fields=rejected)

        project = self.get(project_id, deadline)
        changes: dict[str, Any] = {}
        if "name" in fields:
            changes["name"] = validate_name(fields["name"])
        if "description" in fields:
            changes["description"] = fields["description"] or ""
        if not changes:
            return project

        updated = self.store.update(Project, project_id, changes, deadline=deadline)
        if updated is None:
            raise NotFound("Project", project_id)
        return updated

    def delete(self, project_id: str, deadline: Optional[Deadline] = None) -> dict[str, list[str]]:
        """Cascade delete; returns the ids removed per level."""
        self.get(project_id, deadline)

        removed: dict[str, list[str]] = {"tasks": [], "stories": [], "projects": []}
        try:
            for _ in range(MAX_TASK_SWEEPS):
                task_ids = [t.id for t in self.store.list(Task, deadline, project_id=project_id)]
                if not task_ids:
                    break
                removed["tasks"].extend(self.store.delete_many(Task, task_ids, deadline))
            else:
                if self.store.list(Task, deadline, project_id=project_id):
                    raise CascadeDeleteFailed(project_id, removed, "tasks kept being added during the delete")

            story_ids = [s.id for s in self.store.list(Story, deadline, project_id=project_id)]
            removed["stories"].extend(self.store.delete_many(Story, story_ids, deadline))

            if self.store.delete(Project, project_id, deadline):
                removed["projects"].append(project_id)
        except (StoreError, DeadlineExceeded) as exc:
            logger.error(
                "project_cascade_failed",
                extra={"project_id": project_id, "removed": removed, "error_type": exc.__class__.__name__},
            )
            raise CascadeDeleteFailed(project_id, removed, str(exc)) from exc

        logger.info(
            "project_deleted",
            extra={"project_id": project_id, "tasks": len(removed["tasks"]), "stories": len(removed["stories"])},
        )
        return removed
