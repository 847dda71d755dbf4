# worktrack/schemas/auth_schema.py
from __future__ import annotations

from pydantic import BaseModel


class LoginRequest(BaseModel):
    login: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class Claims(BaseModel):
    """Verified access-token claims."""

    sub: str
    name: str
    given_name: str
    family_name: str
    role: str
    jti: str
    iss: str
    aud: str
    iat: int
    exp: int
