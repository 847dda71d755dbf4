# worktrack/models/task.py
from __future__ import annotations

from sqlalchemy import Column, DateTime, Float, ForeignKey, String

from worktrack.database import Base


class TaskModel(Base):
    __tablename__ = "tasks"

    id = Column(String(64), primary_key=True, index=True)

    project_id = Column(String(64), ForeignKey("projects.id"), nullable=False, index=True)
    story_id = Column(String(64), ForeignKey("stories.id"), nullable=False, index=True)

    name = Column(String, nullable=False)
    description = Column(String, nullable=False, default="")
    priority = Column(String(16), nullable=False, default="medium")

    # todo | doing | done, written only by the task state machine
    status = Column(String(16), nullable=False, default="todo", index=True)
    assigned_user_id = Column(String(64), ForeignKey("users.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False)
    start_date = Column(DateTime(timezone=True), nullable=True)
    end_date = Column(DateTime(timezone=True), nullable=True)

    # hours
    estimated_time = Column(Float, nullable=True)
