# worktrack/auth/passwords.py
from __future__ import annotations

from passlib.context import CryptContext


class PasswordHasher:
    """Thin wrapper over passlib's bcrypt context."""

    def __init__(self, rounds: int = 12):
        self.context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    def hash(self, password: str) -> str:
        return self.context.hash(password)

    def verify(self, plain: str, hashed: str) -> bool:
        return self.context.verify(plain, hashed)

    def dummy_verify(self) -> None:
        # same cost as a real check, so unknown logins are not faster
        self.context.dummy_verify()
