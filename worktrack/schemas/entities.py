# worktrack/schemas/entities.py
"""Typed work-item and credential entities.

These are the documents the engine reads from and writes to a
`DocumentStore`. Stores convert them to and from their own rows.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; everything stored is UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Role(str, Enum):
    ADMIN = "admin"
    DEVELOPER = "developer"
    DEVOPS = "devops"


ASSIGNABLE_ROLES = frozenset({Role.DEVELOPER.value, Role.DEVOPS.value})


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Status(str, Enum):
    TODO = "todo"
    DOING = "doing"
    DONE = "done"


OPEN_STATUSES = frozenset({Status.TODO.value, Status.DOING.value})


class Entity(BaseModel):
    model_config = ConfigDict(from_attributes=True, use_enum_values=True, validate_default=True)

    id: str = Field(default_factory=new_id)


# --------- Users / credentials ----------
class User(Entity):
    login: str
    password_hash: str
    role: Role = Role.DEVELOPER
    first_name: str = ""
    last_name: str = ""

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip() or self.login

    @property
    def is_assignable(self) -> bool:
        return self.role in ASSIGNABLE_ROLES


class RefreshToken(Entity):
    user_id: str
    token_hash: str
    created_at: datetime = Field(default_factory=utcnow)
    expires_at: datetime
    revoked: bool = False

    @field_validator("created_at", "expires_at")
    @classmethod
    def ensure_utc(cls, value):
        return as_utc(value)


# --------- Work items ----------
class Project(Entity):
    name: str
    description: str = ""


class Story(Entity):
    project_id: str
    name: str
    description: str = ""
    priority: Priority = Priority.MEDIUM
    status: Status = Status.TODO
    owner_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator("created_at")
    @classmethod
    def ensure_utc(cls, value):
        return as_utc(value)


class Task(Entity):
    project_id: str
    story_id: str
    name: str
    description: str = ""
    priority: Priority = Priority.MEDIUM
    status: Status = Status.TODO
    assigned_user_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    estimated_time: Optional[float] = None

    @field_validator("created_at", "start_date", "end_date")
    @classmethod
    def ensure_utc(cls, value):
        return as_utc(value)
