# worktrack/project/project_router.py

from fastapi import APIRouter, Depends

from worktrack.deadline import Deadline
from worktrack.dependencies import (
    get_current_claims,
    get_deadline,
    get_project_service,
    get_story_service,
    get_task_service,
)
from worktrack.project.project_service import ProjectService
from worktrack.schemas.entities import Project, Status, Story, Task
from worktrack.schemas.project_schema import ProjectCreate, ProjectUpdate
from worktrack.story.story_service import StoryService
from worktrack.task.task_service import TaskService

router = APIRouter(prefix="/projects", tags=["projects"], dependencies=[Depends(get_current_claims)])


# ==========================
#  CREATE PROJECT
# ==========================
@router.post("/", response_model=Project, status_code=201)
def create_project(
    data: ProjectCreate,
    projects: ProjectService = Depends(get_project_service),
    deadline: Deadline = Depends(get_deadline),
):
    return projects.create(data, deadline)


# ==========================
#  GET ALL PROJECTS
# ==========================
@router.get("/", response_model=list[Project])
def get_all_projects(
    projects: ProjectService = Depends(get_project_service),
    deadline: Deadline = Depends(get_deadline),
):
    return projects.list(deadline)


# ==========================
#  GET PROJECT BY ID
# ==========================
@router.get("/{project_id}", response_model=Project)
def get_project(
    project_id: str,
    projects: ProjectService = Depends(get_project_service),
    deadline: Deadline = Depends(get_deadline),
):
    return projects.get(project_id, deadline)


# ==========================
#  UPDATE PROJECT (PATCH)
# ==========================
@router.patch("/{project_id}", response_model=Project)
def update_project(
    project_id: str,
    data: ProjectUpdate,
    projects: ProjectService = Depends(get_project_service),
    deadline: Deadline = Depends(get_deadline),
):
    return projects.update(project_id, data.model_dump(exclude_unset=True), deadline)


# ==========================
#  DELETE PROJECT (cascade)
# ==========================
@router.delete("/{project_id}")
def delete_project(
    project_id: str,
    projects: ProjectService = Depends(get_project_service),
    deadline: Deadline = Depends(get_deadline),
):
    removed = projects.delete(project_id, deadline)
    return {"removed": removed}


# ==========================
#  CHILDREN
# ==========================
@router.get("/{project_id}/stories", response_model=list[Story])
def get_project_stories(
    project_id: str,
    status: Status | None = None,
    projects: ProjectService = Depends(get_project_service),
    stories: StoryService = Depends(get_story_service),
    deadline: Deadline = Depends(get_deadline),
):
    projects.get(project_id, deadline)
    return stories.list(project_id=project_id, status=status, deadline=deadline)


@router.get("/{project_id}/tasks", response_model=list[Task])
def get_project_tasks(
    project_id: str,
    status: Status | None = None,
    projects: ProjectService = Depends(get_project_service),
    tasks: TaskService = Depends(get_task_service),
    deadline: Deadline = Depends(get_deadline),
):
    projects.get(project_id, deadline)
    return tasks.list(project_id=project_id, status=status, deadline=deadline)
