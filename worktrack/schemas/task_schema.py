# worktrack/schemas/task_schema.py

from pydantic import BaseModel, ConfigDict
from typing import Optional

from worktrack.schemas.entities import Priority


# --------- For CREATE ----------
# project_id is optional, it is taken from the story when missing
class TaskCreate(BaseModel):
    story_id: str
    project_id: Optional[str] = None
    name: str
    description: str = ""
    priority: Priority = Priority.MEDIUM
    estimated_time: Optional[float] = None


# --------- For EDIT (PATCH) ----------
# status, assignee and dates are not here: only the state machine writes them
class TaskEdit(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[Priority] = None
    story_id: Optional[str] = None
    estimated_time: Optional[float] = None


class TaskAssign(BaseModel):
    user_id: str
