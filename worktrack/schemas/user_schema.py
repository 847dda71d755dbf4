# worktrack/schemas/user_schema.py
from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    login: str
    role: str
    first_name: str
    last_name: str
    display_name: str
