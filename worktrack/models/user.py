# worktrack/models/user.py
from __future__ import annotations

from sqlalchemy import Column, String

from worktrack.database import Base


class UserModel(Base):
    __tablename__ = "users"

    id = Column(String(64), primary_key=True, index=True)
    login = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)

    # admin | developer | devops
    role = Column(String(32), nullable=False, default="developer")

    first_name = Column(String(255), nullable=False, default="")
    last_name = Column(String(255), nullable=False, default="")
