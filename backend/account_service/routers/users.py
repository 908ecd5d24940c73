"""Endpoints for the signed-in user's own account."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from account_service.core.deps import get_current_user, get_store
from account_service.core.exceptions import raise_for_outcome
from account_service.db.store import UserStore
from account_service.models.user import User
from account_service.schemas.auth import ApiResponse, envelope
from account_service.schemas.user import AccountUpdate, AvatarUpdate, CoverImageUpdate, UserOut
from account_service.services.users import update_account_details, update_avatar, update_cover_image

router = APIRouter()


@router.get("/me")
def current_user_details(current_user: User = Depends(get_current_user)) -> ApiResponse:
    return envelope(UserOut.model_validate(current_user).model_dump(mode="json"), "current_user")


@router.patch("/me")
def update_details(
    payload: AccountUpdate,
    current_user: User = Depends(get_current_user),
    store: UserStore = Depends(get_store),
) -> ApiResponse:
    outcome = update_account_details(store, current_user.id, payload)
    raise_for_outcome(outcome)
    return envelope(UserOut.model_validate(outcome.value).model_dump(mode="json"), "account_details_updated")


@router.patch("/me/avatar")
def change_avatar(
    payload: AvatarUpdate,
    current_user: User = Depends(get_current_user),
    store: UserStore = Depends(get_store),
) -> ApiResponse:
    outcome = update_avatar(store, current_user.id, payload.avatar)
    raise_for_outcome(outcome)
    return envelope(UserOut.model_validate(outcome.value).model_dump(mode="json"), "avatar_updated")


@router.patch("/me/cover-image")
def change_cover_image(
    payload: CoverImageUpdate,
    current_user: User = Depends(get_current_user),
    store: UserStore = Depends(get_store),
) -> ApiResponse:
    outcome = update_cover_image(store, current_user.id, payload.cover_image)
    raise_for_outcome(outcome)
    return envelope(UserOut.model_validate(outcome.value).model_dump(mode="json"), "cover_image_updated")
