# worktrack/user/user_router.py

from fastapi import APIRouter, Depends

from worktrack.auth.credential_store import CredentialStore
from worktrack.deadline import Deadline
from worktrack.dependencies import get_credential_store, get_current_claims, get_deadline
from worktrack.errors import NotFound
from worktrack.schemas.auth_schema import Claims
from worktrack.schemas.user_schema import UserRead

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserRead)
def get_me(
    claims: Claims = Depends(get_current_claims),
    credentials: CredentialStore = Depends(get_credential_store),
    deadline: Deadline = Depends(get_deadline),
):
    user = credentials.get_user(claims.sub, deadline)
    if user is None:
        raise NotFound("User", claims.sub)
    return UserRead.model_validate(user)


@router.get("/", response_model=list[UserRead], dependencies=[Depends(get_current_claims)])
def list_users(
    credentials: CredentialStore = Depends(get_credential_store),
    deadline: Deadline = Depends(get_deadline),
):
    return [UserRead.model_validate(u) for u in credentials.list_users(deadline)]


@router.get("/assignable", response_model=list[UserRead], dependencies=[Depends(get_current_claims)])
def list_assignable_users(
    credentials: CredentialStore = Depends(get_credential_store),
    deadline: Deadline = Depends(get_deadline),
):
    """Developers and devops, the only roles a task can be assigned to."""
    return [UserRead.model_validate(u) for u in credentials.assignable_users(deadline)]
