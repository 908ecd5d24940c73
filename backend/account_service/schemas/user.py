"""Pydantic schemas for user payloads and responses."""

from __future__ import annotations

import datetime as dt
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from account_service.core.sanitize import clean_email, clean_optional, clean_single_line, clean_username, has_control_chars

MAX_NAME_LEN = 120
MAX_USERNAME_LEN = 64
MAX_URL_LEN = 1024


def _check_password(value: str) -> str:
    if has_control_chars(value):
        raise ValueError("password_contains_control_chars")
    if not value.strip():
        raise ValueError("password_required")
    return value


class UserCreate(BaseModel):
    fullname: str = Field(min_length=1, max_length=MAX_NAME_LEN)
    email: EmailStr
    username: str = Field(min_length=1, max_length=MAX_USERNAME_LEN)
    password: str = Field(min_length=1, max_length=128)
    avatar: str | None = Field(default=None, max_length=MAX_URL_LEN)
    cover_image: str | None = Field(default=None, max_length=MAX_URL_LEN)

    @field_validator("fullname", mode="before")
    @classmethod
    def normalize_fullname(cls, value: str) -> str:
        return clean_single_line(value)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return clean_email(value)

    @field_validator("username", mode="before")
    @classmethod
    def normalize_username(cls, value: str) -> str:
        return clean_username(value)

    @field_validator("avatar", "cover_image", mode="before")
    @classmethod
    def normalize_media_reference(cls, value: str | None) -> str | None:
        return clean_optional(value)

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return _check_password(value)


class UserLogin(BaseModel):
    username: str | None = None
    email: str | None = None
    password: str = Field(min_length=1, max_length=128)

    @field_validator("username", mode="before")
    @classmethod
    def normalize_username(cls, value: str | None) -> str | None:
        return clean_username(value) or None

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: str | None) -> str | None:
        return clean_email(value) or None


class PasswordChange(BaseModel):
    old_password: str = Field(min_length=1, max_length=128)
    new_password: str = Field(min_length=1, max_length=128)

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, value: str) -> str:
        return _check_password(value)


class AccountUpdate(BaseModel):
    fullname: str = Field(min_length=1, max_length=MAX_NAME_LEN)
    email: EmailStr

    @field_validator("fullname", mode="before")
    @classmethod
    def normalize_fullname(cls, value: str) -> str:
        return clean_single_line(value)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return clean_email(value)


class AvatarUpdate(BaseModel):
    avatar: str = Field(min_length=1, max_length=MAX_URL_LEN)

    @field_validator("avatar", mode="before")
    @classmethod
    def normalize_avatar(cls, value: str) -> str:
        return clean_single_line(value)


class CoverImageUpdate(BaseModel):
    cover_image: str = Field(min_length=1, max_length=MAX_URL_LEN)

    @field_validator("cover_image", mode="before")
    @classmethod
    def normalize_cover_image(cls, value: str) -> str:
        return clean_single_line(value)


class UserOut(BaseModel):
    """Public view of a user: never carries the password hash or refresh token."""

    id: UUID
    username: str
    email: EmailStr
    fullname: str
    avatar: str | None = None
    cover_image: str | None = None
    created_at: dt.datetime
    updated_at: dt.datetime

    class Config:
        from_attributes = True
