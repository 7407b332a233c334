# utils/url_tools.py

"""
URL validation and origin helpers
"""

from typing import Optional
from urllib.parse import urldefrag, urljoin, urlsplit

from scan_worker.core.errors import InvalidUrlError

DEFAULT_PORTS = {"http": 80, "https": 443}


def validate_url(url: str) -> str:
    """Return the stripped URL, or raise InvalidUrlError unless it is absolute http(s)"""
    if not url or not url.strip():
        raise InvalidUrlError("URL cannot be empty")

    url = url.strip()
    try:
        parsed = urlsplit(url)
        parsed.port  # raises on a malformed port
    except ValueError as e:
        raise InvalidUrlError(f"URL parsing error: {e}") from e

    if parsed.scheme not in DEFAULT_PORTS:
        raise InvalidUrlError(f"Invalid URL scheme: {parsed.scheme or '(none)'} (must be http or https)")
    if not parsed.hostname:
        raise InvalidUrlError("Invalid URL format: missing domain")
    return url


def origin_of(url: str) -> Optional[str]:
    """scheme://host[:port] with the default port dropped, or None when url is not absolute http(s)"""
    try:
        parsed = urlsplit(url)
        port = parsed.port
    except ValueError:
        return None

    scheme = parsed.scheme.lower()
    if scheme not in DEFAULT_PORTS or not parsed.hostname:
        return None

    host = parsed.hostname
    if ":" in host:
        host = f"[{host}]"
    if port is None or port == DEFAULT_PORTS[scheme]:
        return f"{scheme}://{host}"
    return f"{scheme}://{host}:{port}"


def resolve_href(href: Optional[str], origin: str) -> Optional[str]:
    """Resolve an anchor href against the page origin; None when it is not a usable http(s) URL"""
    if not href or not href.strip():
        return None
    try:
        absolute = urljoin(origin + "/", href.strip())
    except ValueError:
        return None

    absolute, _fragment = urldefrag(absolute)
    if origin_of(absolute) is None:
        return None
    return absolute
