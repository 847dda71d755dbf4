# worktrack/errors.py

from __future__ import annotations

from typing import Any


class WorkTrackError(Exception):
    """Base class for every error the engine reports to the API surface.

    `kind` is the stable name clients switch on, `status_code` the HTTP
    status the API maps it to, and `extra` any ids the caller needs.
    """

    status_code = 500

    def __init__(self, message: str, **extra: Any):
        super().__init__(message)
        self.message = message
        self.extra = extra

    @property
    def kind(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.kind, "detail": self.message, **self.extra}


# ================= AUTH =================
class AuthError(WorkTrackError):
    status_code = 401


class InvalidCredentials(AuthError):
    pass


class TokenExpired(AuthError):
    pass


class TokenInvalid(AuthError):
    pass


class IssuerMismatch(AuthError):
    pass


class ConfigurationError(AuthError):
    status_code = 500


# ================= TASK TRANSITIONS =================
class TransitionError(WorkTrackError):
    status_code = 409


class InvalidTransition(TransitionError):
    def __init__(self, task_id: str, action: str, current: str):
        super().__init__(
            f"Cannot {action} task {task_id} (status={current})",
            task_id=task_id,
            status=current,
        )
        self.action = action
        self.current_status = current


class InvalidAssignee(TransitionError):
    status_code = 422

    def __init__(self, user_id: str, reason: str):
        super().__init__(f"User {user_id} cannot be assigned: {reason}", user_id=user_id)


class InconsistentState(TransitionError):
    pass


class Conflict(TransitionError):
    pass


# ================= REFERENTIAL INTEGRITY =================
class IntegrityError(WorkTrackError):
    status_code = 409


class HasDependents(IntegrityError):
    def __init__(self, entity: str, entity_id: str, blocking_ids: list[str]):
        super().__init__(
            f"Cannot delete {entity} {entity_id}: {len(blocking_ids)} task(s) still reference it",
            blocking_ids=blocking_ids,
        )
        self.blocking_ids = blocking_ids


class CascadeDeleteFailed(IntegrityError):
    status_code = 500

    def __init__(self, project_id: str, removed: dict[str, list[str]], reason: str):
        super().__init__(
            f"Cascade delete of project {project_id} stopped: {reason}",
            project_id=project_id,
            removed=removed,
        )
        self.removed = removed


class DanglingReference(IntegrityError):
    status_code = 422


# ================= MISC =================
class ValidationError(WorkTrackError):
    status_code = 422


class NotFound(WorkTrackError):
    status_code = 404

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} not found", entity=entity, id=entity_id)


class DeadlineExceeded(WorkTrackError):
    status_code = 504
