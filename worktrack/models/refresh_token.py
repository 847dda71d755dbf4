# worktrack/models/refresh_token.py
from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String

from worktrack.database import Base


class RefreshTokenModel(Base):
    __tablename__ = "refresh_tokens"

    id = Column(String(64), primary_key=True, index=True)
    user_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)

    # sha256 of the opaque token; the raw value is never stored
    token_hash = Column(String(64), unique=True, index=True, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    revoked = Column(Boolean, default=False, nullable=False)
