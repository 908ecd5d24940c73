"""Convenience imports for Alembic metadata discovery."""

from account_service.models.user import User  # noqa: F401
