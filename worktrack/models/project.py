# worktrack/models/project.py
from __future__ import annotations

from sqlalchemy import Column, String

from worktrack.database import Base


class ProjectModel(Base):
    __tablename__ = "projects"

    id = Column(String(64), primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=False, default="")
