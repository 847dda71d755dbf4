# worktrack/schemas/project_schema.py

from pydantic import BaseModel, ConfigDict
from typing import Optional


# --------- For creating a project (POST) ---------
class ProjectCreate(BaseModel):
    name: str
    description: str = ""


# --------- For updating a project (PATCH) ---------
class ProjectUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    description: Optional[str] = None
