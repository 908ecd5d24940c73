"""Create an account from the command line for local verification."""

from __future__ import annotations

import argparse
import getpass
import sys
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parents[1]
sys.path.append(str(BASE_DIR))

from account_service.core.config import get_settings  # noqa: E402
from account_service.core.logging import setup_logging  # noqa: E402
from account_service.db.store import UserStore  # noqa: E402
from account_service.schemas.user import UserCreate  # noqa: E402
from account_service.services.users import register_user  # noqa: E402


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("username")
    parser.add_argument("email")
    parser.add_argument("--fullname", default=None)
    args = parser.parse_args()

    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)
    password = getpass.getpass("Password: ")
    payload = UserCreate(
        username=args.username,
        email=args.email,
        fullname=args.fullname or args.username,
        password=password,
    )

    store = UserStore(settings.DATABASE_URL)
    store.init()
    try:
        outcome = register_user(store, payload)
    finally:
        store.dispose()

    if not outcome.ok:
        print(f"error: {outcome.message}", file=sys.stderr)
        return 1
    print(f"created {outcome.value.username} ({outcome.value.id})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
