# worktrack/schemas/story_schema.py

from pydantic import BaseModel, ConfigDict
from typing import Optional

from worktrack.schemas.entities import Priority, Status


# --------- For CREATE ----------
class StoryCreate(BaseModel):
    project_id: str
    name: str
    description: str = ""
    priority: Priority = Priority.MEDIUM
    status: Status = Status.TODO
    owner_id: Optional[str] = None


# --------- For UPDATE (PATCH) ----------
# project_id is deliberately absent: a story never changes project
class StoryUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[Priority] = None
    status: Optional[Status] = None
    owner_id: Optional[str] = None
