from __future__ import annotations

import sys
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parents[1]
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from account_service.core.config import Settings  # noqa: E402
from account_service.db.store import UserStore  # noqa: E402
from account_service.schemas.user import UserCreate  # noqa: E402
from account_service.services.sessions import SessionManager  # noqa: E402
from account_service.services.users import register_user  # noqa: E402

ALICE_PASSWORD = "P@ss1"


@pytest.fixture()
def test_settings() -> Settings:
    return Settings(
        ACCESS_TOKEN_SECRET="access-secret-for-tests-0123456789",
        REFRESH_TOKEN_SECRET="refresh-secret-for-tests-0123456789",
        DATABASE_URL="sqlite://",
        ACCESS_TOKEN_EXPIRE_MINUTES=15,
        REFRESH_TOKEN_EXPIRE_DAYS=10,
        COOKIE_SECURE=True,
    )


@pytest.fixture()
def store():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    user_store = UserStore(engine=engine)
    user_store.init()
    yield user_store
    user_store.dispose()


@pytest.fixture()
def sessions(store: UserStore, test_settings: Settings) -> SessionManager:
    return SessionManager(store, test_settings)


@pytest.fixture()
def alice(store: UserStore):
    outcome = register_user(
        store,
        UserCreate(
            fullname="Alice Liddell",
            email="alice@x.com",
            username="alice",
            password=ALICE_PASSWORD,
        ),
    )
    assert outcome.ok, outcome.message
    return outcome.value
