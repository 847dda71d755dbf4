# worktrack/task/task_router.py

from fastapi import APIRouter, Depends

from worktrack.deadline import Deadline
from worktrack.dependencies import get_current_claims, get_deadline, get_task_service
from worktrack.schemas.entities import Status, Task
from worktrack.schemas.task_schema import TaskAssign, TaskCreate, TaskEdit
from worktrack.task.task_service import TaskService

router = APIRouter(prefix="/tasks", tags=["tasks"], dependencies=[Depends(get_current_claims)])


@router.post("/", response_model=Task, status_code=201)
def create_task(
    data: TaskCreate,
    tasks: TaskService = Depends(get_task_service),
    deadline: Deadline = Depends(get_deadline),
):
    return tasks.create(data, deadline)


@router.get("/", response_model=list[Task])
def get_tasks(
    project_id: str | None = None,
    story_id: str | None = None,
    status: Status | None = None,
    tasks: TaskService = Depends(get_task_service),
    deadline: Deadline = Depends(get_deadline),
):
    return tasks.list(project_id=project_id, story_id=story_id, status=status, deadline=deadline)


@router.get("/{task_id}", response_model=Task)
def get_task(
    task_id: str,
    tasks: TaskService = Depends(get_task_service),
    deadline: Deadline = Depends(get_deadline),
):
    return tasks.get(task_id, deadline)


@router.patch("/{task_id}", response_model=Task)
def edit_task(
    task_id: str,
    data: TaskEdit,
    tasks: TaskService = Depends(get_task_service),
    deadline: Deadline = Depends(get_deadline),
):
    return tasks.edit(task_id, data.model_dump(exclude_unset=True), deadline)


@router.delete("/{task_id}", status_code=204)
def delete_task(
    task_id: str,
    tasks: TaskService = Depends(get_task_service),
    deadline: Deadline = Depends(get_deadline),
):
    tasks.delete(task_id, deadline)
    return


# ==========================
#  STATE TRANSITIONS
# ==========================
@router.post("/{task_id}/assign", response_model=Task)
def assign_task(
    task_id: str,
    data: TaskAssign,
    tasks: TaskService = Depends(get_task_service),
    deadline: Deadline = Depends(get_deadline),
):
    return tasks.assign(task_id, data.user_id, deadline)


@router.post("/{task_id}/complete", response_model=Task)
def complete_task(
    task_id: str,
    tasks: TaskService = Depends(get_task_service),
    deadline: Deadline = Depends(get_deadline),
):
    return tasks.complete(task_id, deadline)


@router.post("/{task_id}/reset", response_model=Task)
def reset_task(
    task_id: str,
    tasks: TaskService = Depends(get_task_service),
    deadline: Deadline = Depends(get_deadline),
):
    return tasks.reset(task_id, deadline)
