"""Explicit success/failure values returned by the session and token layers."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorKind(str, enum.Enum):
    bad_request = "bad_request"
    not_found = "not_found"
    bad_credential = "bad_credential"
    unauthorized = "unauthorized"
    invalid_token = "invalid_token"
    expired = "expired"
    token_reused = "token_reused"
    conflict = "conflict"
    internal = "internal"


@dataclass(frozen=True)
class Outcome(Generic[T]):
    value: T | None = None
    error: ErrorKind | None = None
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T | None = None) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str | None = None) -> "Outcome[T]":
        return cls(error=kind, message=message or kind.value)
