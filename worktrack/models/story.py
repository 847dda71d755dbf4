# worktrack/models/story.py
from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, String

from worktrack.database import Base


class StoryModel(Base):
    __tablename__ = "stories"

    id = Column(String(64), primary_key=True, index=True)

    # no ondelete: the engine removes tasks and stories itself, in order
    project_id = Column(String(64), ForeignKey("projects.id"), nullable=False, index=True)

    name = Column(String, nullable=False)
    description = Column(String, nullable=False, default="")

    priority = Column(String(16), nullable=False, default="medium")
    status = Column(String(16), nullable=False, default="todo")

    owner_id = Column(String(64), ForeignKey("users.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False)
