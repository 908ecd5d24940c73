"""Service helpers for account registration and profile updates."""

from __future__ import annotations

import logging
from typing import Any
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from account_service.core.results import ErrorKind, Outcome
from account_service.core.security import hash_password
from account_service.db.store import UserStore, parse_user_id
from account_service.models.user import User
from account_service.schemas.user import AccountUpdate, UserCreate

logger = logging.getLogger(__name__)

STORE_UNAVAILABLE = "store_unavailable"


def register_user(store: UserStore, data: UserCreate) -> Outcome[User]:
    try:
        existing = store.find_by_identifier(username=data.username, email=data.email)
    except SQLAlchemyError:
        logger.exception("Registration lookup failed for %s", data.username)
        return Outcome.failure(ErrorKind.internal, STORE_UNAVAILABLE)
    if existing:
        logger.warning("Registration rejected, username or email taken: %s", data.username)
        return Outcome.failure(ErrorKind.conflict, "user_with_email_or_username_exists")

    user = User(
        id=uuid4(),
        username=data.username.lower(),
        email=data.email.lower(),
        fullname=data.fullname,
        password_hash=hash_password(data.password),
        avatar=data.avatar,
        cover_image=data.cover_image or "",
    )
    try:
        created = store.save(user)
    except IntegrityError:
        # lost a race against a concurrent registration with the same identity
        return Outcome.failure(ErrorKind.conflict, "user_with_email_or_username_exists")
    except SQLAlchemyError:
        logger.exception("Failed to register user %s", data.username)
        return Outcome.failure(ErrorKind.internal, "registration_failed")

    logger.info("User created: %s", created.username)
    return Outcome.success(created)


def get_user(store: UserStore, user_id: Any) -> Outcome[User]:
    try:
        user = store.find_by_id(user_id)
    except SQLAlchemyError:
        logger.exception("User lookup failed for %s", user_id)
        return Outcome.failure(ErrorKind.internal, STORE_UNAVAILABLE)
    if user is None:
        return Outcome.failure(ErrorKind.not_found, "user_not_found")
    return Outcome.success(user)


def _email_taken_by_other(store: UserStore, email: str, user_id: Any) -> bool:
    with store.session() as db:
        owner = db.scalars(select(User.id).where(User.email == email)).first()
    return owner is not None and owner != parse_user_id(user_id)


def update_account_details(store: UserStore, user_id: Any, data: AccountUpdate) -> Outcome[User]:
    try:
        taken = _email_taken_by_other(store, data.email, user_id)
    except SQLAlchemyError:
        logger.exception("Email ownership check failed for user %s", user_id)
        return Outcome.failure(ErrorKind.internal, STORE_UNAVAILABLE)
    if taken:
        return Outcome.failure(ErrorKind.conflict, "email_exists")

    try:
        user = store.update(user_id, fullname=data.fullname, email=data.email)
    except IntegrityError:
        return Outcome.failure(ErrorKind.conflict, "email_exists")
    except SQLAlchemyError:
        logger.exception("Failed to update account details for user %s", user_id)
        return Outcome.failure(ErrorKind.internal, "update_failed")
    if user is None:
        return Outcome.failure(ErrorKind.not_found, "user_not_found")

    logger.info("Account details updated: %s", user.username)
    return Outcome.success(user)


def _update_media(store: UserStore, user_id: Any, field: str, url: str) -> Outcome[User]:
    if not url:
        return Outcome.failure(ErrorKind.bad_request, f"{field}_required")
    try:
        user = store.update(user_id, **{field: url})
    except SQLAlchemyError:
        logger.exception("Failed to update %s for user %s", field, user_id)
        return Outcome.failure(ErrorKind.internal, "update_failed")
    if user is None:
        return Outcome.failure(ErrorKind.not_found, "user_not_found")

    logger.info("Updated %s for user %s", field, user.username)
    return Outcome.success(user)


def update_avatar(store: UserStore, user_id: Any, url: str) -> Outcome[User]:
    return _update_media(store, user_id, "avatar", url)


def update_cover_image(store: UserStore, user_id: Any, url: str) -> Outcome[User]:
    return _update_media(store, user_id, "cover_image", url)
