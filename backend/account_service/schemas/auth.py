"""Auth-related schemas (token refresh, response envelope)."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from account_service.core.sanitize import clean_single_line


class TokenRefreshRequest(BaseModel):
    refresh_token: str | None = Field(default=None, alias="refreshToken")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("refresh_token", mode="before")
    @classmethod
    def normalize_refresh_token(cls, value: str | None) -> str | None:
        return clean_single_line(value) or None


class ApiResponse(BaseModel):
    status_code: int = Field(alias="statusCode")
    data: Any = None
    message: str
    success: bool = True

    model_config = ConfigDict(populate_by_name=True)


def envelope(data: Any, message: str, status_code: int = 200) -> ApiResponse:
    return ApiResponse(status_code=status_code, data=data, message=message, success=status_code < 400)
