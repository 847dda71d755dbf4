# worktrack/auth/token_service.py
"""
Token Service: login, access-token minting, refresh-token rotation.

Access token:  15 minutes (ACCESS_TOKEN_EXPIRE_MINUTES), HS256
Refresh token: 7 days     (REFRESH_TOKEN_EXPIRE_DAYS), opaque

Access token claims:
{
    "sub": <user id>,
    "name": <login>,
    "given_name": <first name>,
    "family_name": <last name>,
    "role": "admin" | "developer" | "devops",
    "jti": <uuid4>,
    "iss": <JWT_ISSUER>,
    "aud": <JWT_AUDIENCE>,
    "iat": <issued at>,
    "exp": <expires at>
}

Refresh tokens are 128 random bits, base64-encoded. Only their sha256 is
stored, bound to the user they were issued to. Each one is usable once:
refresh revokes it and issues a new pair.
"""
from __future__ import annotations

import base64
import hashlib
import logging
import secrets
import uuid
from datetime import datetime, timedelta
from typing import Callable, Optional

from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTClaimsError, JWTError
from jose.utils import base64url_decode, base64url_encode
from pydantic import ValidationError as PydanticValidationError

from worktrack.auth.credential_store import CredentialStore
from worktrack.auth.passwords import PasswordHasher
from worktrack.config import JwtSettings
from worktrack.deadline import Deadline
from worktrack.errors import InvalidCredentials, IssuerMismatch, TokenExpired, TokenInvalid
from worktrack.schemas.auth_schema import Claims, TokenPair
from worktrack.schemas.entities import RefreshToken, User, utcnow

logger = logging.getLogger("worktrack.auth")

REFRESH_TOKEN_BYTES = 16


def hash_token(token: str) -> str:
    """SHA-256 of a refresh token, the only form that is persisted."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def has_canonical_signature(token: str) -> bool:
    """True when the signature segment is the exact base64url encoding of its bytes.

    The decoder ignores the unused low bits of the last character, so a
    token whose signature was re-spelled that way would otherwise verify.
    """
    parts = token.split(".")
    if len(parts) != 3:
        return False
    signature = parts[2].encode("ascii", "replace")
    try:
        return base64url_encode(base64url_decode(signature)) == signature
    except ValueError:
        return False


class TokenService:
    def __init__(
        self,
        settings: JwtSettings,
        credentials: CredentialStore,
        passwords: PasswordHasher,
        clock: Callable[[], datetime] = utcnow,
    ):
        settings.require_valid()
        self.settings = settings
        self.credentials = credentials
        self.passwords = passwords
        self.clock = clock

    # ═══════════════════════════════════════════════════════════
    # Login / refresh / logout
    # ═══════════════════════════════════════════════════════════
    def authenticate(self, login: str, password: str, deadline: Optional[Deadline] = None) -> TokenPair:
        user = self.credentials.find_by_login(login, deadline)
        if user is None:
            self.passwords.dummy_verify()
            logger.info("login_failed", extra={"reason": "unknown_login"})
            raise InvalidCredentials("Invalid credentials")

        if not self.passwords.verify(password, user.password_hash):
            logger.info("login_failed", extra={"reason": "bad_password", "user_id": user.id})
            raise InvalidCredentials("Invalid credentials")

        pair = self.issue_pair(user, deadline)
        logger.info("login_succeeded", extra={"user_id": user.id, "role": user.role})
        return pair

    def refresh(self, refresh_token: str, deadline: Optional[Deadline] = None) -> TokenPair:
        record = self.credentials.find_refresh_token(hash_token(refresh_token), deadline)
        if record is None or record.revoked:
            logger.warning("refresh_rejected", extra={"reason": "unknown_or_revoked"})
            raise TokenInvalid("Refresh token not recognised")

        if record.expires_at <= self.clock():
            logger.info("refresh_rejected", extra={"reason": "expired", "user_id": record.user_id})
            raise TokenInvalid("Refresh token expired")

        user = self.credentials.get_user(record.user_id, deadline)
        if user is None:
            raise TokenInvalid("Refresh token owner no longer exists")

        # rotation: whoever revokes first wins, a replayed token fails
        if not self.credentials.revoke_refresh_token(record.id, deadline):
            logger.warning("refresh_rejected", extra={"reason": "reused", "user_id": user.id})
            raise TokenInvalid("Refresh token already used")

        pair = self.issue_pair(user, deadline)
        logger.info("token_refreshed", extra={"user_id": user.id})
        return pair

    def revoke(self, refresh_token: str, deadline: Optional[Deadline] = None) -> bool:
        record = self.credentials.find_refresh_token(hash_token(refresh_token), deadline)
        if record is None:
            return False
        revoked = self.credentials.revoke_refresh_token(record.id, deadline)
        if revoked:
            logger.info("refresh_token_revoked", extra={"user_id": record.user_id})
        return revoked

    # ═══════════════════════════════════════════════════════════
    # Minting
    # ═══════════════════════════════════════════════════════════
    def issue_pair(self, user: User, deadline: Optional[Deadline] = None) -> TokenPair:
        return TokenPair(
            access_token=self.mint_access_token(user),
            refresh_token=self.mint_refresh_token(user, deadline),
            expires_in=self.settings.access_token_minutes * 60,
        )

    def mint_access_token(self, user: User) -> str:
        now = self.clock()
        payload = {
            "sub": user.id,
            "name": user.login,
            "given_name": user.first_name,
            "family_name": user.last_name,
            "role": user.role,
            "jti": str(uuid.uuid4()),
            "iss": self.settings.issuer,
            "aud": self.settings.audience,
            "iat": now,
            "exp": now + timedelta(minutes=self.settings.access_token_minutes),
        }
        return jwt.encode(payload, self.settings.key, algorithm=self.settings.algorithm)

    def mint_refresh_token(self, user: User, deadline: Optional[Deadline] = None) -> str:
        raw = base64.b64encode(secrets.token_bytes(REFRESH_TOKEN_BYTES)).decode("ascii")
        now = self.clock()
        self.credentials.save_refresh_token(
            RefreshToken(
                user_id=user.id,
                token_hash=hash_token(raw),
                created_at=now,
                expires_at=now + timedelta(days=self.settings.refresh_token_days),
            ),
            deadline,
        )
        return raw

    # ═══════════════════════════════════════════════════════════
    # Verification
    # ═══════════════════════════════════════════════════════════
    def verify(self, access_token: str) -> Claims:
        if not has_canonical_signature(access_token):
            raise TokenInvalid("Invalid access token")
        try:
            payload = jwt.decode(
                access_token,
                self.settings.key,
                algorithms=[self.settings.algorithm],
                audience=self.settings.audience,
                issuer=self.settings.issuer,
            )
        except ExpiredSignatureError:
            raise TokenExpired("Access token expired")
        except JWTClaimsError as exc:
            message = str(exc).lower()
            if "issuer" in message or "audience" in message:
                raise IssuerMismatch(f"Access token not valid here: {exc}")
            raise TokenInvalid(f"Invalid access token claims: {exc}")
        except JWTError:
            raise TokenInvalid("Invalid access token")

        try:
            return Claims.model_validate(payload)
        except PydanticValidationError:
            raise TokenInvalid("Access token is missing required claims")
