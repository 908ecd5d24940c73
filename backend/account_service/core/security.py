"""Security helpers for hashing passwords and minting/verifying JWTs."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Any
from uuid import uuid4

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from account_service.core.results import ErrorKind, Outcome

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"
DEFAULT_ALGORITHM = "HS256"


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    token_type: str | None
    jti: str | None
    issued_at: dt.datetime | None
    expires_at: dt.datetime | None
    extra: dict[str, Any]


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str | None) -> bool:
    if not password or not hashed:
        return False
    try:
        return pwd_context.verify(password, hashed)
    except ValueError:
        # unrecognized or corrupt hash
        return False


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _from_timestamp(value: Any) -> dt.datetime | None:
    if value is None:
        return None
    try:
        return dt.datetime.fromtimestamp(int(value), tz=dt.timezone.utc)
    except (TypeError, ValueError, OverflowError):
        return None


def mint_token(
    user_id: Any,
    kind: str,
    secret: str,
    ttl: dt.timedelta,
    *,
    claims: dict[str, Any] | None = None,
    algorithm: str = DEFAULT_ALGORITHM,
) -> str:
    """Sign a token for ``user_id`` that expires ``ttl`` from now.

    Every token carries a fresh ``jti`` so two tokens minted for the same user
    within the same second are still distinct strings.
    """
    now = _utcnow()
    to_encode = dict(claims or {})
    to_encode.update(
        {
            "sub": str(user_id),
            "type": kind,
            "jti": str(uuid4()),
            "iat": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
        }
    )
    return jwt.encode(to_encode, secret, algorithm=algorithm)


def verify_token(token: str, secret: str, *, algorithm: str = DEFAULT_ALGORITHM) -> Outcome[TokenClaims]:
    """Check signature and expiry only; the caller decides whether the user exists."""
    if not token or not isinstance(token, str):
        return Outcome.failure(ErrorKind.invalid_token)
    try:
        payload = jwt.decode(token, secret, algorithms=[algorithm], options={"verify_aud": False})
    except ExpiredSignatureError:
        return Outcome.failure(ErrorKind.expired, "token_expired")
    except JWTError:
        return Outcome.failure(ErrorKind.invalid_token)

    user_id = payload.get("sub")
    if not user_id:
        return Outcome.failure(ErrorKind.invalid_token)

    reserved = {"sub", "type", "jti", "iat", "exp"}
    return Outcome.success(
        TokenClaims(
            user_id=str(user_id),
            token_type=payload.get("type"),
            jti=payload.get("jti"),
            issued_at=_from_timestamp(payload.get("iat")),
            expires_at=_from_timestamp(payload.get("exp")),
            extra={key: value for key, value in payload.items() if key not in reserved},
        )
    )
