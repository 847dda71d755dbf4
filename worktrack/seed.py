# worktrack/seed.py
from __future__ import annotations

import logging

from worktrack.auth.passwords import PasswordHasher
from worktrack.schemas.entities import Role, User
from worktrack.store.base import DocumentStore

logger = logging.getLogger("worktrack.seed")

# (id, login, password, role, first name, last name)
DEMO_USERS = [
    ("user-admin-01", "admin", "admin123", Role.ADMIN, "Jan", "Kowalski"),
    ("user-dev-01", "dev1", "devpass", Role.DEVELOPER, "Anna", "Nowak"),
    ("user-devops-01", "ops1", "opspass", Role.DEVOPS, "Piotr", "Zieliński"),
]


def seed_demo_users(store: DocumentStore, passwords: PasswordHasher) -> int:
    """Insert the demo team when no user exists yet. Returns how many were added."""
    if store.list(User):
        return 0

    for user_id, login, password, role, first_name, last_name in DEMO_USERS:
        store.add(
            User(
                id=user_id,
                login=login,
                password_hash=passwords.hash(password),
                role=role,
                first_name=first_name,
                last_name=last_name,
            )
        )

    logger.info("demo_users_seeded", extra={"count": len(DEMO_USERS)})
    return len(DEMO_USERS)
