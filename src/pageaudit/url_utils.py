"""Shared URL sanitization and canonicalization helpers."""

from __future__ import annotations

from typing import FrozenSet
from urllib.parse import urlsplit, urlunsplit

HTTP_URL_SCHEMES: FrozenSet[str] = frozenset({"http", "https"})
DEFAULT_PORTS = {"http": 80, "https": 443}


def sanitize_url(url: str) -> str:
    """Remove shell-escaping artifacts and surrounding whitespace."""
    if not url:
        return ""
    return str(url).replace("\\", "").strip()


def is_http_url(url: str) -> bool:
    """Return True when a target is a valid HTTP(S) URL."""
    sanitized = sanitize_url(url)
    if not sanitized:
        return False
    parsed = urlsplit(sanitized)
    return parsed.scheme.lower() in HTTP_URL_SCHEMES and bool(parsed.netloc)


def canonicalize_url(url: str) -> str:
    """Return the canonical absolute form of ``url``.

    Lower-cases scheme and host, drops default ports, and gives an empty
    path a trailing ``/``. Raises ``ValueError`` when the URL has no scheme
    or host.
    """
    sanitized = sanitize_url(url)
    parsed = urlsplit(sanitized)
    if not parsed.scheme or not parsed.netloc or not parsed.hostname:
        raise ValueError(f"Not an absolute URL: {url!r}")

    scheme = parsed.scheme.lower()
    hostname = parsed.hostname.lower()
    if ":" in hostname:
        hostname = f"[{hostname}]"
    port = parsed.port
    include_port = port is not None and DEFAULT_PORTS.get(scheme) != port
    netloc = f"{hostname}:{port}" if include_port else hostname
    userinfo = parsed.netloc.rpartition("@")[0]
    if userinfo:
        netloc = f"{userinfo}@{netloc}"

    path = parsed.path or "/"
    return urlunsplit((scheme, netloc, path, parsed.query, parsed.fragment))


def strip_fragment(url: str) -> str:
    """Return ``url`` without its ``#fragment``."""
    parsed = urlsplit(url)
    return urlunsplit((parsed.scheme, parsed.netloc, parsed.path, parsed.query, ""))


def equal_with_excluded_fragments(url_a: str, url_b: str) -> bool:
    """Return True when both URLs denote the same resource ignoring fragments."""
    try:
        return strip_fragment(canonicalize_url(url_a)) == strip_fragment(canonicalize_url(url_b))
    except ValueError:
        return False
