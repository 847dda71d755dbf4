# worktrack/config.py

from __future__ import annotations

import os

from dotenv import load_dotenv
from pydantic import BaseModel

from worktrack.errors import ConfigurationError

# ---------------- ENV ----------------
load_dotenv()

MIN_JWT_KEY_BYTES = 16

DEFAULT_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class JwtSettings(BaseModel):
    key: str | None = None
    issuer: str = "worktrack-auth"
    audience: str = "worktrack-api"
    algorithm: str = "HS256"
    access_token_minutes: int = 15
    refresh_token_days: int = 7

    def require_valid(self) -> None:
        """Fail fast when the signing key is unusable."""
        if not self.key:
            raise ConfigurationError("JWT_KEY is not configured")
        if len(self.key.encode("utf-8")) < MIN_JWT_KEY_BYTES:
            raise ConfigurationError(
                f"JWT_KEY must be at least {MIN_JWT_KEY_BYTES} bytes long"
            )
        if not self.issuer or not self.audience:
            raise ConfigurationError("JWT_ISSUER and JWT_AUDIENCE must not be empty")
        if self.access_token_minutes <= 0 or self.refresh_token_days <= 0:
            raise ConfigurationError("token lifetimes must be positive")


class Settings(BaseModel):
    database_url: str = "sqlite:///./worktrack.db"
    store_backend: str = "sql"  # sql | memory
    sql_echo: bool = False

    jwt: JwtSettings = JwtSettings()

    password_hash_rounds: int = 12
    seed_demo_users: bool = True
    request_timeout_seconds: float | None = 10.0

    cors_origins: list[str] = DEFAULT_ORIGINS
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        origins = list(DEFAULT_ORIGINS)
        frontend_origin = os.getenv("FRONTEND_ORIGIN")
        if frontend_origin:
            origins.append(frontend_origin)

        timeout = os.getenv("REQUEST_TIMEOUT_SECONDS", "10")

        try:
            return cls(
                database_url=os.getenv("DATABASE_URL", "sqlite:///./worktrack.db"),
                store_backend=os.getenv("STORE_BACKEND", "sql").lower(),
                sql_echo=_env_bool("SQL_ECHO", False),
                jwt=JwtSettings(
                    key=os.getenv("JWT_KEY"),
                    issuer=os.getenv("JWT_ISSUER", "worktrack-auth"),
                    audience=os.getenv("JWT_AUDIENCE", "worktrack-api"),
                    access_token_minutes=int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "15")),
                    refresh_token_days=int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "7")),
                ),
                password_hash_rounds=int(os.getenv("PASSWORD_HASH_ROUNDS", "12")),
                seed_demo_users=_env_bool("SEED_DEMO_USERS", True),
                request_timeout_seconds=float(timeout) if timeout else None,
                cors_origins=origins,
                log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            )
        except ValueError as exc:
            raise ConfigurationError(f"invalid configuration value: {exc}") from exc

    def require_valid(self) -> None:
        self.jwt.require_valid()
        if self.store_backend not in ("sql", "memory"):
            raise ConfigurationError(f"unknown STORE_BACKEND {self.store_backend!r}")
