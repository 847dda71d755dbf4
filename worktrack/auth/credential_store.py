# worktrack/auth/credential_store.py
from __future__ import annotations

from typing import Optional

from worktrack.deadline import Deadline
from worktrack.schemas.entities import RefreshToken, User
from worktrack.store.base import DocumentStore, StoreConflict


class CredentialStore:
    """User records (read-only at runtime) and refresh-token records."""

    def __init__(self, store: DocumentStore):
        self.store = store

    # ---------------- USERS ----------------
    def get_user(self, user_id: str, deadline: Optional[Deadline] = None) -> Optional[User]:
        return self.store.get(User, user_id, deadline)

    def find_by_login(self, login: str, deadline: Optional[Deadline] = None) -> Optional[User]:
        wanted = login.casefold()
        for user in self.store.list(User, deadline):
            if user.login.casefold() == wanted:
                return user
        return None

    def list_users(self, deadline: Optional[Deadline] = None) -> list[User]:
        return sorted(self.store.list(User, deadline), key=lambda u: u.login)

    def assignable_users(self, deadline: Optional[Deadline] = None) -> list[User]:
        return [u for u in self.list_users(deadline) if u.is_assignable]

    # ---------------- REFRESH TOKENS ----------------
    def save_refresh_token(self, record: RefreshToken, deadline: Optional[Deadline] = None) -> RefreshToken:
        return self.store.add(record, deadline)

    def find_refresh_token(self, token_hash: str, deadline: Optional[Deadline] = None) -> Optional[RefreshToken]:
        matches = self.store.list(RefreshToken, deadline, token_hash=token_hash)
        return matches[0] if matches else None

    def revoke_refresh_token(self, record_id: str, deadline: Optional[Deadline] = None) -> bool:
        """Mark a live record revoked. False if it was already revoked or is gone."""
        try:
            updated = self.store.update(
                RefreshToken, record_id, {"revoked": True}, expected={"revoked": False}, deadline=deadline
            )
        except StoreConflict:
            return False
        return updated is not None
