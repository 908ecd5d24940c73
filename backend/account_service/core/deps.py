"""Common FastAPI dependencies for the store handle and authentication."""

from __future__ import annotations

from fastapi import Depends, Request

from account_service.core.exceptions import AuthenticationException, DatabaseException, exception_for
from account_service.core.results import ErrorKind
from account_service.db.store import UserStore
from account_service.models.user import User
from account_service.services.sessions import SessionManager
from account_service.services.users import get_user


def get_store(request: Request) -> UserStore:
    return request.app.state.store


def get_session_manager(request: Request) -> SessionManager:
    return request.app.state.sessions


def _extract_bearer_token(request: Request) -> str | None:
    authorization = request.headers.get("Authorization", "")
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    cleaned = token.strip()
    return cleaned or None


def get_current_user(request: Request, sessions: SessionManager = Depends(get_session_manager)) -> User:
    token = _extract_bearer_token(request) or request.cookies.get(sessions.settings.ACCESS_COOKIE_NAME)
    if not token:
        raise AuthenticationException("unauthorized_request")

    checked = sessions.verify_access_token(token)
    if not checked.ok:
        raise exception_for(checked.error, "access_token_expired" if checked.error is ErrorKind.expired else None)

    found = get_user(sessions.store, checked.value.user_id)
    if found.error is ErrorKind.internal:
        raise DatabaseException()
    if not found.ok:
        raise AuthenticationException("invalid_access_token", error_code="INVALID_TOKEN")
    return found.value
