"""Credential stripping for connection URLs before they are logged or emitted."""

from __future__ import annotations

import re
from functools import lru_cache

# same userinfo grammar as sqlalchemy's URL parser: the username stops at ":"
# or "/", the password runs up to the last "@" of the token
_CREDENTIALS_PATTERN = r"(?P<scheme>[A-Za-z][A-Za-z0-9+.\-]*://)[^:/\s]*(?::\S*)?@"


@lru_cache
def credentials_pattern() -> "re.Pattern[str]":
    return re.compile(_CREDENTIALS_PATTERN)


def mask(identifier: str) -> str:
    """Remove every ``user[:password]@`` segment following a URL scheme."""
    return credentials_pattern().sub(r"\g<scheme>", identifier)


__all__ = ["credentials_pattern", "mask"]
