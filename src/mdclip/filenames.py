"""File name sanitizing for clipped articles and their images."""

import re
from collections.abc import Iterable

__all__ = ["sanitize_filename"]

# / ? < > \ : * | "
_ILLEGAL_RE = re.compile(r'[/?<>\\:*|"]')


def sanitize_filename(name: str | None, disallowed_chars: Iterable[str] | None = None) -> str | None:
    """Strip characters that are illegal in file paths.

    Non-breaking spaces become ordinary spaces. Every character in
    ``disallowed_chars`` is removed as well, taken literally. ``None`` is
    returned unchanged.
    """
    if not name:
        return name

    cleaned = _ILLEGAL_RE.sub("", name).replace("\u00a0", " ")

    if disallowed_chars:
        for char in disallowed_chars:
            cleaned = cleaned.replace(char, "")

    return cleaned
