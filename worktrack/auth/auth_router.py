# worktrack/auth/auth_router.py

from fastapi import APIRouter, Depends

from worktrack.auth.token_service import TokenService
from worktrack.deadline import Deadline
from worktrack.dependencies import get_deadline, get_token_service
from worktrack.schemas.auth_schema import LoginRequest, RefreshRequest, TokenPair

router = APIRouter(tags=["auth"])


@router.post("/login", response_model=TokenPair)
def login(
    request: LoginRequest,
    tokens: TokenService = Depends(get_token_service),
    deadline: Deadline = Depends(get_deadline),
):
    return tokens.authenticate(request.login, request.password, deadline)


@router.post("/refresh", response_model=TokenPair)
def refresh(
    request: RefreshRequest,
    tokens: TokenService = Depends(get_token_service),
    deadline: Deadline = Depends(get_deadline),
):
    return tokens.refresh(request.refresh_token, deadline)


@router.post("/logout", status_code=204)
def logout(
    request: RefreshRequest,
    tokens: TokenService = Depends(get_token_service),
    deadline: Deadline = Depends(get_deadline),
):
    # same answer whether or not the token was live
    tokens.revoke(request.refresh_token, deadline)
    return
