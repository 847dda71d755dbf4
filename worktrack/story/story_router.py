# worktrack/story/story_router.py

from fastapi import APIRouter, Depends

from worktrack.deadline import Deadline
from worktrack.dependencies import get_current_claims, get_deadline, get_story_service, get_task_service
from worktrack.schemas.entities import Status, Story, Task
from worktrack.schemas.story_schema import StoryCreate, StoryUpdate
from worktrack.story.story_service import StoryService
from worktrack.task.task_service import TaskService

router = APIRouter(prefix="/stories", tags=["stories"], dependencies=[Depends(get_current_claims)])


@router.post("/", response_model=Story, status_code=201)
def create_story(
    data: StoryCreate,
    stories: StoryService = Depends(get_story_service),
    deadline: Deadline = Depends(get_deadline),
):
    return stories.create(data, deadline)


@router.get("/", response_model=list[Story])
def get_stories(
    project_id: str | None = None,
    status: Status | None = None,
    stories: StoryService = Depends(get_story_service),
    deadline: Deadline = Depends(get_deadline),
):
    return stories.list(project_id=project_id, status=status, deadline=deadline)


@router.get("/{story_id}", response_model=Story)
def get_story(
    story_id: str,
    stories: StoryService = Depends(get_story_service),
    deadline: Deadline = Depends(get_deadline),
):
    return stories.get(story_id, deadline)


@router.patch("/{story_id}", response_model=Story)
def update_story(
    story_id: str,
    data: StoryUpdate,
    stories: StoryService = Depends(get_story_service),
    deadline: Deadline = Depends(get_deadline),
):
    return stories.update(story_id, data.model_dump(exclude_unset=True), deadline)


@router.delete("/{story_id}", status_code=204)
def delete_story(
    story_id: str,
    stories: StoryService = Depends(get_story_service),
    deadline: Deadline = Depends(get_deadline),
):
    stories.delete(story_id, deadline)
    return


@router.get("/{story_id}/tasks", response_model=list[Task])
def get_story_tasks(
    story_id: str,
    status: Status | None = None,
    stories: StoryService = Depends(get_story_service),
    tasks: TaskService = Depends(get_task_service),
    deadline: Deadline = Depends(get_deadline),
):
    stories.get(story_id, deadline)
    return tasks.list(story_id=story_id, status=status, deadline=deadline)
