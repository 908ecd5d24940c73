"""Session lifecycle: credential checks, token issue, rotation, and logout.

All session state lives in the credential store. A user is logged out when the
stored refresh token is NULL and active while it holds the last token issued.
Every successful refresh replaces both tokens and overwrites the stored one,
so a refresh token can be exchanged exactly once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from account_service.core.config import Settings
from account_service.core.results import ErrorKind, Outcome
from account_service.core.security import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    TokenClaims,
    hash_password,
    mint_token,
    verify_password,
    verify_token,
)
from account_service.db.store import UserStore
from account_service.models.user import User

logger = logging.getLogger(__name__)

STORE_UNAVAILABLE = "store_unavailable"


@dataclass(frozen=True)
class SessionTokens:
    access_token: str
    refresh_token: str
    user: User


def _profile_claims(user: User) -> dict[str, Any]:
    return {"username": user.username, "email": user.email, "fullname": user.fullname}


class SessionManager:
    def __init__(self, store: UserStore, settings: Settings) -> None:
        self.store = store
        self.settings = settings

    @property
    def _access_secret(self) -> str:
        return self.settings.ACCESS_TOKEN_SECRET.get_secret_value()

    @property
    def _refresh_secret(self) -> str:
        return self.settings.REFRESH_TOKEN_SECRET.get_secret_value()

    def _mint_pair(self, user: User) -> tuple[str, str]:
        access_token = mint_token(
            user.id,
            ACCESS_TOKEN_TYPE,
            self._access_secret,
            self.settings.access_token_ttl,
            claims=_profile_claims(user),
            algorithm=self.settings.JWT_ALGORITHM,
        )
        refresh_token = mint_token(
            user.id,
            REFRESH_TOKEN_TYPE,
            self._refresh_secret,
            self.settings.refresh_token_ttl,
            algorithm=self.settings.JWT_ALGORITHM,
        )
        return access_token, refresh_token

    def verify_access_token(self, token: str) -> Outcome[TokenClaims]:
        return verify_token(token, self._access_secret, algorithm=self.settings.JWT_ALGORITHM)

    def verify_refresh_token(self, token: str) -> Outcome[TokenClaims]:
        return verify_token(token, self._refresh_secret, algorithm=self.settings.JWT_ALGORITHM)

    def authenticate(
        self,
        *,
        username: str | None = None,
        email: str | None = None,
        password: str | None = None,
    ) -> Outcome[User]:
        if not username and not email:
            return Outcome.failure(ErrorKind.bad_request, "username_or_email_required")
        if not password:
            return Outcome.failure(ErrorKind.bad_request, "password_required")

        try:
            user = self.store.find_by_identifier(username=username, email=email)
        except SQLAlchemyError:
            logger.exception("Credential lookup failed (%s)", username or email)
            return Outcome.failure(ErrorKind.internal, STORE_UNAVAILABLE)
        if user is None:
            logger.warning("Login failed: user not found (%s)", username or email)
            return Outcome.failure(ErrorKind.not_found, "user_not_found")
        if not verify_password(password, user.password_hash):
            logger.warning("Login failed: invalid password (%s)", user.username)
            return Outcome.failure(ErrorKind.bad_credential, "invalid_credentials")

        logger.info("User authenticated: %s", user.username)
        return Outcome.success(user)

    def issue_session(self, user_id: Any) -> Outcome[SessionTokens]:
        """Mint a fresh pair and make its refresh token the only valid one.

        Tokens are handed back only after the store write commits; on failure
        the previously stored token stays in place.
        """
        try:
            user = self.store.find_by_id(user_id)
        except SQLAlchemyError:
            logger.exception("User lookup failed for %s", user_id)
            return Outcome.failure(ErrorKind.internal, STORE_UNAVAILABLE)
        if user is None:
            return Outcome.failure(ErrorKind.not_found, "user_not_found")

        access_token, refresh_token = self._mint_pair(user)
        try:
            updated = self.store.update(user.id, refresh_token=refresh_token)
        except SQLAlchemyError:
            logger.exception("Failed to persist refresh token for user %s", user.id)
            return Outcome.failure(ErrorKind.internal, "token_generation_failed")
        if updated is None:
            return Outcome.failure(ErrorKind.not_found, "user_not_found")

        logger.info("Session issued for user %s", updated.id)
        return Outcome.success(SessionTokens(access_token=access_token, refresh_token=refresh_token, user=updated))

    def refresh(self, presented: str | None) -> Outcome[SessionTokens]:
        if not presented:
            return Outcome.failure(ErrorKind.unauthorized, "unauthorized_request")

        checked = self.verify_refresh_token(presented)
        if not checked.ok:
            return Outcome.failure(checked.error, checked.message)
        claims = checked.value

        try:
            user = self.store.find_by_id(claims.user_id)
        except SQLAlchemyError:
            logger.exception("User lookup failed for %s", claims.user_id)
            return Outcome.failure(ErrorKind.internal, STORE_UNAVAILABLE)
        if user is None:
            return Outcome.failure(ErrorKind.invalid_token, "invalid_refresh_token")

        if user.refresh_token != presented:
            logger.warning("Refresh token reuse detected for user %s", user.id)
            return Outcome.failure(ErrorKind.token_reused, "refresh_token_expired_or_used")

        access_token, refresh_token = self._mint_pair(user)
        try:
            swapped = self.store.swap_refresh_token(user.id, expected=presented, new=refresh_token)
        except SQLAlchemyError:
            logger.exception("Failed to rotate refresh token for user %s", user.id)
            return Outcome.failure(ErrorKind.internal, "token_generation_failed")
        if not swapped:
            # another request rotated this token between the check and the write
            logger.warning("Concurrent refresh lost the swap for user %s", user.id)
            return Outcome.failure(ErrorKind.token_reused, "refresh_token_expired_or_used")

        # detached copy; mirror the committed swap instead of re-reading
        user.refresh_token = refresh_token
        logger.info("Session refreshed for user %s", user.id)
        return Outcome.success(SessionTokens(access_token=access_token, refresh_token=refresh_token, user=user))

    def terminate(self, user_id: Any) -> Outcome[None]:
        try:
            user = self.store.update(user_id, refresh_token=None)
        except SQLAlchemyError:
            logger.exception("Failed to clear refresh token for user %s", user_id)
            return Outcome.failure(ErrorKind.internal, "logout_failed")
        if user is not None:
            logger.info("Session terminated for user %s", user.id)
        return Outcome.success()

    def change_credential(self, user_id: Any, old_password: str, new_password: str) -> Outcome[None]:
        try:
            user = self.store.find_by_id(user_id)
        except SQLAlchemyError:
            logger.exception("User lookup failed for %s", user_id)
            return Outcome.failure(ErrorKind.internal, STORE_UNAVAILABLE)
        if user is None:
            return Outcome.failure(ErrorKind.not_found, "user_not_found")
        if not verify_password(old_password, user.password_hash):
            logger.warning("Password change rejected for user %s", user.id)
            return Outcome.failure(ErrorKind.bad_credential, "invalid_password")
        if not new_password:
            return Outcome.failure(ErrorKind.bad_request, "password_required")

        try:
            self.store.update(user.id, password_hash=hash_password(new_password))
        except SQLAlchemyError:
            logger.exception("Failed to store new password for user %s", user.id)
            return Outcome.failure(ErrorKind.internal, "password_change_failed")
        logger.info("Password changed for user %s", user.id)
        return Outcome.success()
