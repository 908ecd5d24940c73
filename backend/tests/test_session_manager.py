from __future__ import annotations

import datetime as dt
from uuid import uuid4

import pytest
from sqlalchemy.exc import SQLAlchemyError

from account_service.core.results import ErrorKind
from account_service.core.security import REFRESH_TOKEN_TYPE, mint_token, verify_password
from account_service.schemas.user import UserCreate
from account_service.services.sessions import SessionManager
from account_service.services.users import register_user

ALICE_PASSWORD = "P@ss1"


def _login(sessions: SessionManager, user) -> tuple[str, str]:  # noqa: ANN001
    issued = sessions.issue_session(user.id)
    assert issued.ok, issued.message
    return issued.value.access_token, issued.value.refresh_token


# ----- authenticate -----


def test_authenticate_by_username_or_email(sessions: SessionManager, alice) -> None:  # noqa: ANN001
    by_username = sessions.authenticate(username="alice", password=ALICE_PASSWORD)
    by_email = sessions.authenticate(email="alice@x.com", password=ALICE_PASSWORD)

    assert by_username.ok and by_username.value.id == alice.id
    assert by_email.ok and by_email.value.id == alice.id


def test_authenticate_username_is_case_insensitive(sessions: SessionManager, alice) -> None:  # noqa: ANN001
    outcome = sessions.authenticate(username="ALICE", password=ALICE_PASSWORD)

    assert outcome.ok
    assert outcome.value.id == alice.id


@pytest.mark.parametrize("guess", ["P@ss2", "p@ss1", "P@ss", "P@ss1 ", " P@ss1", "P@ss11", "wrong"])
def test_authenticate_rejects_any_wrong_password(sessions: SessionManager, alice, guess: str) -> None:  # noqa: ANN001
    outcome = sessions.authenticate(username="alice", password=guess)

    assert outcome.error is ErrorKind.bad_credential


def test_authenticate_requires_identifier_and_password(sessions: SessionManager, alice) -> None:  # noqa: ANN001
    assert sessions.authenticate(password=ALICE_PASSWORD).error is ErrorKind.bad_request
    assert sessions.authenticate(username="alice", password="").error is ErrorKind.bad_request


def test_authenticate_unknown_user_is_not_found(sessions: SessionManager, alice) -> None:  # noqa: ANN001
    assert sessions.authenticate(username="bob", password=ALICE_PASSWORD).error is ErrorKind.not_found


def test_authenticate_with_mismatched_identifiers_matches_either(sessions: SessionManager, store, alice) -> None:  # noqa: ANN001
    register_user(
        store,
        UserCreate(fullname="Bob", email="bob@x.com", username="bob", password="b0b-pass"),
    )

    # both fields supplied, naming different accounts: the older account is used
    outcome = sessions.authenticate(username="bob", email="alice@x.com", password=ALICE_PASSWORD)

    assert outcome.ok
    assert outcome.value.id == alice.id


# ----- issue_session -----


def test_issue_session_returns_distinct_tokens_and_stores_refresh(sessions: SessionManager, store, alice) -> None:  # noqa: ANN001
    access_token, refresh_token = _login(sessions, alice)

    assert access_token and refresh_token
    assert access_token != refresh_token
    assert store.find_by_id(alice.id).refresh_token == refresh_token


def test_issue_session_replaces_previous_refresh_token(sessions: SessionManager, alice) -> None:  # noqa: ANN001
    _, first_refresh = _login(sessions, alice)
    _, second_refresh = _login(sessions, alice)

    assert first_refresh != second_refresh
    assert sessions.refresh(first_refresh).error is ErrorKind.token_reused
    assert sessions.refresh(second_refresh).ok


def test_issue_session_for_unknown_user(sessions: SessionManager) -> None:
    assert sessions.issue_session(uuid4()).error is ErrorKind.not_found
    assert sessions.issue_session("not-a-uuid").error is ErrorKind.not_found


def test_issue_session_store_failure_returns_no_tokens_and_keeps_prior_session(
    sessions: SessionManager, store, alice, monkeypatch  # noqa: ANN001
) -> None:
    _, prior_refresh = _login(sessions, alice)

    def broken_update(*args, **kwargs):  # noqa: ANN001, ANN202
        raise SQLAlchemyError("database unavailable")

    monkeypatch.setattr(store, "update", broken_update)
    outcome = sessions.issue_session(alice.id)
    monkeypatch.undo()

    assert outcome.error is ErrorKind.internal
    assert outcome.value is None
    assert store.find_by_id(alice.id).refresh_token == prior_refresh
    assert sessions.refresh(prior_refresh).ok


# ----- refresh -----


def test_refresh_rotates_refresh_token(sessions: SessionManager, store, alice) -> None:  # noqa: ANN001
    _, refresh_token = _login(sessions, alice)

    rotated = sessions.refresh(refresh_token)

    assert rotated.ok
    assert rotated.value.refresh_token != refresh_token
    assert rotated.value.access_token
    assert store.find_by_id(alice.id).refresh_token == rotated.value.refresh_token


def test_refresh_twice_with_same_token_detects_reuse(sessions: SessionManager, alice) -> None:  # noqa: ANN001
    _, refresh_token = _login(sessions, alice)

    assert sessions.refresh(refresh_token).ok
    assert sessions.refresh(refresh_token).error is ErrorKind.token_reused


def test_refresh_without_token_is_unauthorized(sessions: SessionManager) -> None:
    assert sessions.refresh(None).error is ErrorKind.unauthorized
    assert sessions.refresh("").error is ErrorKind.unauthorized


def test_refresh_with_wrong_secret_or_garbage_is_invalid(sessions: SessionManager, alice) -> None:  # noqa: ANN001
    foreign = mint_token(alice.id, REFRESH_TOKEN_TYPE, "some-other-secret-xxxxxxxxxxxxxxxx", dt.timedelta(days=1))
    access_token, _ = _login(sessions, alice)

    assert sessions.refresh(foreign).error is ErrorKind.invalid_token
    assert sessions.refresh("garbage").error is ErrorKind.invalid_token
    # access tokens are signed with the access secret
    assert sessions.refresh(access_token).error is ErrorKind.invalid_token


def test_refresh_with_expired_token_is_expired(sessions: SessionManager, test_settings, alice) -> None:  # noqa: ANN001
    expired = mint_token(
        alice.id,
        REFRESH_TOKEN_TYPE,
        test_settings.REFRESH_TOKEN_SECRET.get_secret_value(),
        dt.timedelta(seconds=-5),
    )

    assert sessions.refresh(expired).error is ErrorKind.expired


def test_refresh_for_deleted_user_is_invalid(sessions: SessionManager, test_settings) -> None:  # noqa: ANN001
    orphan = mint_token(
        uuid4(),
        REFRESH_TOKEN_TYPE,
        test_settings.REFRESH_TOKEN_SECRET.get_secret_value(),
        dt.timedelta(days=1),
    )

    assert sessions.refresh(orphan).error is ErrorKind.invalid_token


def test_refresh_losing_concurrent_swap_is_reuse(sessions: SessionManager, store, alice, monkeypatch) -> None:  # noqa: ANN001
    _, refresh_token = _login(sessions, alice)
    monkeypatch.setattr(store, "swap_refresh_token", lambda *args, **kwargs: False)

    assert sessions.refresh(refresh_token).error is ErrorKind.token_reused


def test_refresh_store_failure_keeps_presented_token_valid(sessions: SessionManager, store, alice, monkeypatch) -> None:  # noqa: ANN001
    _, refresh_token = _login(sessions, alice)

    def broken_swap(*args, **kwargs):  # noqa: ANN001, ANN202
        raise SQLAlchemyError("database unavailable")

    monkeypatch.setattr(store, "swap_refresh_token", broken_swap)
    assert sessions.refresh(refresh_token).error is ErrorKind.internal
    monkeypatch.undo()

    assert sessions.refresh(refresh_token).ok


# ----- terminate -----


def test_terminate_then_refresh_fails(sessions: SessionManager, store, alice) -> None:  # noqa: ANN001
    _, refresh_token = _login(sessions, alice)

    assert sessions.terminate(alice.id).ok
    assert store.find_by_id(alice.id).refresh_token is None
    assert sessions.refresh(refresh_token).error is ErrorKind.token_reused


def test_terminate_is_idempotent(sessions: SessionManager, alice) -> None:  # noqa: ANN001
    assert sessions.terminate(alice.id).ok
    assert sessions.terminate(alice.id).ok
    assert sessions.terminate(uuid4()).ok


# ----- change_credential -----


def test_change_credential_requires_old_password(sessions: SessionManager, store, alice) -> None:  # noqa: ANN001
    assert sessions.change_credential(alice.id, "nope", "N3w-pass").error is ErrorKind.bad_credential
    assert verify_password(ALICE_PASSWORD, store.find_by_id(alice.id).password_hash)

    assert sessions.change_credential(alice.id, ALICE_PASSWORD, "N3w-pass").ok
    assert sessions.authenticate(username="alice", password="N3w-pass").ok
    assert sessions.authenticate(username="alice", password=ALICE_PASSWORD).error is ErrorKind.bad_credential


def test_change_credential_keeps_outstanding_refresh_token(sessions: SessionManager, alice) -> None:  # noqa: ANN001
    _, refresh_token = _login(sessions, alice)

    assert sessions.change_credential(alice.id, ALICE_PASSWORD, "N3w-pass").ok
    assert sessions.refresh(refresh_token).ok


def test_change_credential_unknown_user(sessions: SessionManager) -> None:
    assert sessions.change_credential(uuid4(), "a", "b").error is ErrorKind.not_found


# ----- store read failures -----


def _broken_read(*args, **kwargs):  # noqa: ANN001, ANN202
    raise SQLAlchemyError("database unavailable")


def test_authenticate_lookup_failure_is_internal(sessions: SessionManager, store, alice, monkeypatch) -> None:  # noqa: ANN001
    monkeypatch.setattr(store, "find_by_identifier", _broken_read)

    outcome = sessions.authenticate(username="alice", password=ALICE_PASSWORD)

    assert outcome.error is ErrorKind.internal
    assert outcome.value is None


def test_session_operations_report_lookup_failure(sessions: SessionManager, store, alice, monkeypatch) -> None:  # noqa: ANN001
    _, refresh_token = _login(sessions, alice)
    monkeypatch.setattr(store, "find_by_id", _broken_read)

    assert sessions.issue_session(alice.id).error is ErrorKind.internal
    assert sessions.refresh(refresh_token).error is ErrorKind.internal
    assert sessions.change_credential(alice.id, ALICE_PASSWORD, "N3w-pass").error is ErrorKind.internal
    monkeypatch.undo()

    # nothing was rotated or rewritten while the store was down
    assert store.find_by_id(alice.id).refresh_token == refresh_token
    assert sessions.authenticate(username="alice", password=ALICE_PASSWORD).ok


# ----- end to end -----


def test_alice_session_lifecycle(sessions: SessionManager, alice) -> None:  # noqa: ANN001
    authenticated = sessions.authenticate(username="alice", password="P@ss1")
    assert authenticated.ok

    issued = sessions.issue_session(authenticated.value.id)
    assert issued.ok
    access_token, refresh_token = issued.value.access_token, issued.value.refresh_token
    assert access_token and refresh_token and access_token != refresh_token

    rotated = sessions.refresh(refresh_token)
    assert rotated.ok
    assert rotated.value.refresh_token != refresh_token

    assert not sessions.refresh(refresh_token).ok
