"""Link and image reference normalization."""

import re
from urllib.parse import SplitResult, urlsplit, urlunsplit

from mdclip.exceptions import UrlError

__all__ = ["image_filename", "origin", "resolve"]

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*:")
_DEFAULT_PORTS = {"http": 80, "https": 443, "ws": 80, "wss": 443, "ftp": 21}


def _parse_base(base_uri: str) -> SplitResult:
    parts = urlsplit(base_uri.strip())
    if not parts.scheme or not parts.netloc:
        raise UrlError(f"Base URL must be absolute: {base_uri!r}")
    try:
        parts.port
    except ValueError as e:
        raise UrlError(f"Base URL has an invalid port: {base_uri!r}") from e
    if not parts.path:
        parts = parts._replace(path="/")
    return parts


def origin(base_uri: str) -> str:
    """Return scheme://host[:port] of an absolute URL, without credentials.

    Raises:
        UrlError: If base_uri is not an absolute URL.

    """
    parts = _parse_base(base_uri)
    host = parts.netloc.rpartition("@")[2]
    port = parts.port
    if port is not None and _DEFAULT_PORTS.get(parts.scheme.lower()) == port:
        host = host.rpartition(":")[0]
    return f"{parts.scheme.lower()}://{host.lower()}"


def resolve(href: str, base_uri: str) -> str:
    """Resolve a link or image reference against the page URL.

    Absolute references (any scheme, including ``data:`` and ``mailto:``) are
    returned unchanged. Root-relative references are joined to the origin of
    ``base_uri``; anything else is appended to ``base_uri`` itself, with a
    single ``/`` between them. The last path segment of ``base_uri`` is never
    dropped, so ``photo.jpg`` against ``/post.html`` gives
    ``/post.html/photo.jpg``.

    Raises:
        UrlError: If a relative reference meets a base URL that is not absolute.

    """
    if _SCHEME_RE.match(href):
        return href

    if href.startswith("/"):
        return origin(base_uri) + href

    base = urlunsplit(_parse_base(base_uri))
    separator = "" if base.endswith("/") else "/"
    return base + separator + href


def image_filename(src: str, prefix: str = "") -> str:
    """Return the file name part of an image URL, optionally prefixed.

    The name runs from after the last ``/`` up to the first ``?``.
    """
    slash_pos = src.rfind("/")
    query_pos = src.find("?")
    end = query_pos if query_pos > 0 else len(src)
    return prefix + src[slash_pos + 1:end]
