"""Simple logging setup for the application."""

from __future__ import annotations

import logging
import os
import re

# header.payload.signature, base64url segments
_JWT_RE = re.compile(r"eyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+")
_REDACTED = "[redacted-token]"


class TokenRedactionFilter(logging.Filter):
    """Masks anything that looks like a JWT before it is emitted."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        if "eyJ" in message:
            record.msg = _JWT_RE.sub(_REDACTED, message)
            record.args = None
        return True


def setup_logging(level: str | None = None) -> None:
    root = logging.getLogger()
    if root.handlers:
        return

    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=level_name,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    for handler in root.handlers:
        handler.addFilter(TokenRedactionFilter())
