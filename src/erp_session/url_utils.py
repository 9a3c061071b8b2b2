# src/erp_session/url_utils.py

import re
from typing import Optional

# C0 control characters plus the zero-width space that QR scanners leave behind
_INVISIBLE_CHARS = re.compile(r"[\x00-\x1f\u200b]")
_TRAILING_JUNK = re.compile(r"[\s/]+$")
_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*://")


def clean_base_url(raw: Optional[str]) -> str:
    """
    Normalise a base URL as scanned or typed by the user.

    Removes control and zero-width characters, surrounding whitespace and
    trailing slashes. Idempotent: clean_base_url(clean_base_url(x)) == clean_base_url(x).
    """
    if not raw:
        return ""
    cleaned = _INVISIBLE_CHARS.sub("", raw)
    return _TRAILING_JUNK.sub("", cleaned).strip()


def is_absolute_url(url: str) -> bool:
    """True if the URL carries its own scheme (http://, https://, ...)."""
    return bool(_SCHEME.match(url or ""))


def join_api_url(base_url: str, prefix: str, url: str) -> str:
    """
    Build an absolute URL from a base URL, an API prefix and a relative path.

    >>> join_api_url("https://example.com/", "/api", "user")
    'https://example.com/api/user'
    """
    root = clean_base_url(base_url)
    prefix = prefix.strip("/")
    path = url.lstrip("/")
    parts = [root] + ([prefix] if prefix else []) + ([path] if path else [])
    return "/".join(parts)
