# worktrack/dependencies.py
from __future__ import annotations

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from worktrack.auth.credential_store import CredentialStore
from worktrack.auth.token_service import TokenService
from worktrack.config import Settings
from worktrack.database import get_db
from worktrack.deadline import Deadline
from worktrack.errors import TokenInvalid
from worktrack.project.project_service import ProjectService
from worktrack.schemas.auth_schema import Claims
from worktrack.store.base import DocumentStore
from worktrack.store.sql_store import SqlDocumentStore
from worktrack.story.story_service import StoryService
from worktrack.task.task_service import TaskService

bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request):
    memory_store = request.app.state.memory_store
    if memory_store is not None:
        yield memory_store
        return

    sessions = get_db(request.app.state.session_factory)
    db = next(sessions)
    try:
        yield SqlDocumentStore(db)
    finally:
        sessions.close()


def get_deadline(settings: Settings = Depends(get_settings)) -> Deadline:
    if settings.request_timeout_seconds is None:
        return Deadline.never()
    return Deadline(settings.request_timeout_seconds)


def get_credential_store(store: DocumentStore = Depends(get_store)) -> CredentialStore:
    return CredentialStore(store)


def get_token_service(
    request: Request,
    credentials: CredentialStore = Depends(get_credential_store),
    settings: Settings = Depends(get_settings),
) -> TokenService:
    return TokenService(settings.jwt, credentials, request.app.state.passwords)


def get_current_claims(
    bearer: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    tokens: TokenService = Depends(get_token_service),
) -> Claims:
    if bearer is None or bearer.scheme.lower() != "bearer" or not bearer.credentials:
        raise TokenInvalid("Missing bearer token")
    return tokens.verify(bearer.credentials)


def get_project_service(store: DocumentStore = Depends(get_store)) -> ProjectService:
    return ProjectService(store)


def get_story_service(store: DocumentStore = Depends(get_store)) -> StoryService:
    return StoryService(store)


def get_task_service(store: DocumentStore = Depends(get_store)) -> TaskService:
    return TaskService(store)
