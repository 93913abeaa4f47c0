"""
Origin parsing and allow-list matching for login redirects.

Allow-list entries are either full origins (``https://ui.example.com``) or
bare host patterns (``ui.example.com``, ``tenant*.app.local``). A pattern may
contain one ``*``, which only ever matches a run of ASCII digits.
"""

from urllib.parse import urlsplit


def parse_origin_header(value: str | None) -> tuple[str, str] | None:
    """
    Parse an Origin or Referer header value.

    Returns:
        (origin, host) with origin normalized to scheme://host[:port],
        or None if the value is not an http(s) URL.
    """
    if not value:
        return None
    try:
        parts = urlsplit(value.strip())
    except ValueError:
        return None
    if parts.scheme not in ("http", "https") or not parts.netloc or not parts.hostname:
        return None
    return f"{parts.scheme}://{parts.netloc}", parts.netloc


def is_host_allowed(host: str, pattern: str) -> bool:
    """Case-insensitive host match supporting a single numeric wildcard."""
    host = host.lower()
    pattern = pattern.lower()

    wildcards = pattern.count("*")
    if wildcards == 0:
        return host == pattern
    if wildcards > 1:
        return False

    prefix, suffix = pattern.split("*")
    if len(host) <= len(prefix) + len(suffix):
        return False
    if not (host.startswith(prefix) and host.endswith(suffix)):
        return False

    middle = host[len(prefix) : len(host) - len(suffix)]
    return middle.isascii() and middle.isdigit()


def is_origin_allowed(origin: str, host: str, allowed: list[str]) -> bool:
    scheme = origin.split("://", 1)[0].lower()
    for entry in allowed:
        if "://" in entry:
            entry_scheme, _, entry_host = entry.partition("://")
            if entry_scheme.lower() != scheme:
                continue
            if is_host_allowed(host, entry_host.rstrip("/")):
                return True
        elif is_host_allowed(host, entry):
            return True
    return False


def resolve_app_origin(
    origin_header: str | None,
    referer_header: str | None,
    allowed: list[str],
) -> str | None:
    """
    Pick the web app origin a login was started from.

    Uses the Origin header, falling back to Referer. Returns the normalized
    origin when it is allow-listed, None otherwise.
    """
    parsed = parse_origin_header(origin_header) or parse_origin_header(referer_header)
    if parsed is None:
        return None

    origin, host = parsed
    if not is_origin_allowed(origin, host, allowed):
        return None
    return origin
