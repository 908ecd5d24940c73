"""Authentication endpoints (register, login, refresh, logout, password change)."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, Response, status

from account_service.core.config import Settings
from account_service.core.deps import get_current_user, get_session_manager, get_store
from account_service.core.exceptions import BadRequestError, raise_for_outcome
from account_service.core.results import ErrorKind
from account_service.db.store import UserStore
from account_service.models.user import User
from account_service.schemas.auth import ApiResponse, TokenRefreshRequest, envelope
from account_service.schemas.user import PasswordChange, UserCreate, UserLogin, UserOut
from account_service.services.sessions import SessionManager
from account_service.services.users import register_user

router = APIRouter()
logger = logging.getLogger(__name__)


def _cookie_options(settings: Settings) -> dict:
    return {"httponly": True, "secure": settings.COOKIE_SECURE, "samesite": "lax", "path": "/"}


def _set_auth_cookies(response: Response, settings: Settings, *, access_token: str, refresh_token: str) -> None:
    options = _cookie_options(settings)
    response.set_cookie(
        settings.ACCESS_COOKIE_NAME,
        access_token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        **options,
    )
    response.set_cookie(
        settings.REFRESH_COOKIE_NAME,
        refresh_token,
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        **options,
    )


def _clear_auth_cookies(response: Response, settings: Settings) -> None:
    options = _cookie_options(settings)
    response.delete_cookie(settings.ACCESS_COOKIE_NAME, **options)
    response.delete_cookie(settings.REFRESH_COOKIE_NAME, **options)


def _public_user(user: User) -> dict:
    return UserOut.model_validate(user).model_dump(mode="json")


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(payload: UserCreate, store: UserStore = Depends(get_store)) -> ApiResponse:
    outcome = register_user(store, payload)
    raise_for_outcome(outcome)
    return envelope(_public_user(outcome.value), "user_registered", status_code=status.HTTP_201_CREATED)


@router.post("/login")
def login(
    payload: UserLogin,
    response: Response,
    sessions: SessionManager = Depends(get_session_manager),
) -> ApiResponse:
    authenticated = sessions.authenticate(username=payload.username, email=payload.email, password=payload.password)
    raise_for_outcome(authenticated)

    issued = sessions.issue_session(authenticated.value.id)
    raise_for_outcome(issued)
    tokens = issued.value

    _set_auth_cookies(
        response,
        sessions.settings,
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
    )
    return envelope(
        {
            "user": _public_user(tokens.user),
            "accessToken": tokens.access_token,
            "refreshToken": tokens.refresh_token,
        },
        "logged_in",
    )


@router.post("/logout")
def logout(
    response: Response,
    current_user: User = Depends(get_current_user),
    sessions: SessionManager = Depends(get_session_manager),
) -> ApiResponse:
    raise_for_outcome(sessions.terminate(current_user.id))
    _clear_auth_cookies(response, sessions.settings)
    return envelope({}, "logged_out")


@router.post("/refresh")
def refresh(
    request: Request,
    response: Response,
    payload: TokenRefreshRequest | None = None,
    sessions: SessionManager = Depends(get_session_manager),
) -> ApiResponse:
    presented = request.cookies.get(sessions.settings.REFRESH_COOKIE_NAME)
    if not presented and payload is not None:
        presented = payload.refresh_token

    rotated = sessions.refresh(presented)
    raise_for_outcome(rotated)
    tokens = rotated.value

    _set_auth_cookies(
        response,
        sessions.settings,
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
    )
    return envelope(
        {"accessToken": tokens.access_token, "refreshToken": tokens.refresh_token},
        "access_token_refreshed",
    )


@router.post("/change-password")
def change_password(
    payload: PasswordChange,
    current_user: User = Depends(get_current_user),
    sessions: SessionManager = Depends(get_session_manager),
) -> ApiResponse:
    outcome = sessions.change_credential(current_user.id, payload.old_password, payload.new_password)
    if outcome.error is ErrorKind.bad_credential:
        raise BadRequestError("invalid_password")
    raise_for_outcome(outcome)
    return envelope({}, "password_changed")
