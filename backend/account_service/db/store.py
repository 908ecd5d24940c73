"""Credential store: an explicitly constructed handle over the users table.

The handle owns its engine and session factory. ``init`` must be called once
before serving requests and ``dispose`` on shutdown; nothing here is created at
import time.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator
from uuid import UUID

from sqlalchemy import create_engine, or_, select, text, update
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from account_service.db.base import Base
from account_service.models.user import User

logger = logging.getLogger(__name__)


def parse_user_id(user_id: Any) -> UUID | None:
    if isinstance(user_id, UUID):
        return user_id
    try:
        return UUID(str(user_id))
    except (TypeError, ValueError):
        return None


class UserStore:
    def __init__(self, database_url: str | None = None, *, engine: Engine | None = None) -> None:
        if engine is None:
            if not database_url:
                raise ValueError("database_url or engine is required")
            engine = create_engine(database_url, pool_pre_ping=True)
        self.engine = engine
        self._session_factory = sessionmaker(
            bind=engine,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
        )

    def init(self) -> None:
        """Verify connectivity and create missing tables. Raises on failure."""
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        Base.metadata.create_all(bind=self.engine)
        logger.info("Credential store ready (%s)", self.engine.url.get_backend_name())

    def dispose(self) -> None:
        self.engine.dispose()
        logger.info("Credential store disposed")

    @contextmanager
    def session(self) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def find_by_identifier(self, *, username: str | None = None, email: str | None = None) -> User | None:
        """Match on username OR email; the oldest matching account wins."""
        conditions = []
        if username:
            conditions.append(User.username == username.lower())
        if email:
            conditions.append(User.email == email.lower())
        if not conditions:
            return None
        with self.session() as db:
            stmt = select(User).where(or_(*conditions)).order_by(User.created_at.asc()).limit(1)
            return db.scalars(stmt).first()

    def find_by_id(self, user_id: Any) -> User | None:
        parsed = parse_user_id(user_id)
        if parsed is None:
            return None
        with self.session() as db:
            return db.get(User, parsed)

    def save(self, user: User) -> User:
        with self.session() as db:
            db.add(user)
            db.commit()
            db.refresh(user)
            return user

    def update(self, user_id: Any, **fields: Any) -> User | None:
        parsed = parse_user_id(user_id)
        if parsed is None:
            return None
        with self.session() as db:
            user = db.get(User, parsed)
            if user is None:
                return None
            for key, value in fields.items():
                setattr(user, key, value)
            db.add(user)
            db.commit()
            db.refresh(user)
            return user

    def swap_refresh_token(self, user_id: Any, *, expected: str, new: str) -> bool:
        """Atomically replace the stored refresh token only if it still equals ``expected``."""
        parsed = parse_user_id(user_id)
        if parsed is None:
            return False
        with self.session() as db:
            result = db.execute(
                update(User)
                .where(User.id == parsed, User.refresh_token == expected)
                .values(refresh_token=new)
                .execution_options(synchronize_session=False)
            )
            db.commit()
            return result.rowcount == 1
