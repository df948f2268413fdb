"""Placeholder substitution for titles, file names and front/back matter.

Templates are plain strings with ``{placeholder}`` tokens. Filling runs in
four fixed phases:

1. article fields: ``{key}`` plus the ``:kebab``, ``:snake``, ``:camel`` and
   ``:pascal`` transform suffixes;
2. dates: ``{date:FORMAT}`` using a moment.js-style token grammar;
3. keywords: ``{keywords}`` or ``{keywords:SEP}``;
4. cleanup: any ``{...}`` left over is removed.

``date`` and ``keywords`` are reserved placeholder families, so an article
field with either name never takes part in phase 1.
"""

import re
from collections.abc import Callable, Iterable
from datetime import datetime, timezone

from mdclip.filenames import sanitize_filename
from mdclip.models import TemplateContext

__all__ = ["fill", "format_date", "join_keywords"]

_RESERVED_KEYS = frozenset({"content", "date", "keywords"})

_DATE_RE = re.compile(r"\{date:(.+?)\}")
_KEYWORDS_RE = re.compile(r"\{keywords(?::([^}]*))?\}")
_LEFTOVER_RE = re.compile(r"\{.*?\}")
_SEPARATOR_ESCAPE_RE = re.compile(r"\\(u[0-9a-fA-F]{4}|[ntrbf\"/\\])")
_SEPARATOR_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    '"': '"',
    "/": "/",
    "\\": "\\",
}

_MONTHS = (
    "January", "February", "March", "April", "May", "June", "July",
    "August", "September", "October", "November", "December",
)
_WEEKDAYS = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")

# Longest tokens first so YYYY wins over YY, MMMM over MM, and so on.
_DATE_TOKEN_RE = re.compile(
    r"\[[^\]]*\]|YYYY|YY|MMMM|MMM|MM|M|Do|DD|D|dddd|ddd|dd|d"
    r"|HH|H|hh|h|mm|m|ss|s|SSS|A|a|ZZ|Z|X|x"
)


def _ordinal(day: int) -> str:
    if 11 <= day % 100 <= 13:
        return f"{day}th"
    suffix = {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    return f"{day}{suffix}"


def _hour12(now: datetime) -> int:
    return now.hour % 12 or 12


def _offset(now: datetime, separator: str) -> str:
    delta = now.utcoffset()
    minutes = int(delta.total_seconds() // 60) if delta is not None else 0
    sign = "-" if minutes < 0 else "+"
    hours, minutes = divmod(abs(minutes), 60)
    return f"{sign}{hours:02d}{separator}{minutes:02d}"


_DATE_TOKENS: dict[str, Callable[[datetime], str]] = {
    "YYYY": lambda d: f"{d.year:04d}",
    "YY": lambda d: f"{d.year % 100:02d}",
    "MMMM": lambda d: _MONTHS[d.month - 1],
    "MMM": lambda d: _MONTHS[d.month - 1][:3],
    "MM": lambda d: f"{d.month:02d}",
    "M": lambda d: str(d.month),
    "Do": lambda d: _ordinal(d.day),
    "DD": lambda d: f"{d.day:02d}",
    "D": lambda d: str(d.day),
    "dddd": lambda d: _WEEKDAYS[d.isoweekday() % 7],
    "ddd": lambda d: _WEEKDAYS[d.isoweekday() % 7][:3],
    "dd": lambda d: _WEEKDAYS[d.isoweekday() % 7][:2],
    "d": lambda d: str(d.isoweekday() % 7),
    "HH": lambda d: f"{d.hour:02d}",
    "H": lambda d: str(d.hour),
    "hh": lambda d: f"{_hour12(d):02d}",
    "h": lambda d: str(_hour12(d)),
    "mm": lambda d: f"{d.minute:02d}",
    "m": lambda d: str(d.minute),
    "ss": lambda d: f"{d.second:02d}",
    "s": lambda d: str(d.second),
    "SSS": lambda d: f"{d.microsecond // 1000:03d}",
    "A": lambda d: "AM" if d.hour < 12 else "PM",
    "a": lambda d: "am" if d.hour < 12 else "pm",
    "ZZ": lambda d: _offset(d, ""),
    "Z": lambda d: _offset(d, ":"),
    "X": lambda d: str(int(d.timestamp())),
    "x": lambda d: str(int(d.timestamp() * 1000)),
}


def format_date(fmt: str, now: datetime) -> str:
    """Render ``now`` using moment.js-style tokens.

    Text in square brackets is emitted literally; any character that is not
    part of a token passes through unchanged.
    """
    def _replace(match: re.Match[str]) -> str:
        token = match.group(0)
        if token.startswith("["):
            return token[1:-1]
        return _DATE_TOKENS[token](now)

    return _DATE_TOKEN_RE.sub(_replace, fmt)


def _unescape_separator(separator: str) -> str:
    def _replace(match: re.Match[str]) -> str:
        escape = match.group(1)
        if escape.startswith("u"):
            return chr(int(escape[1:], 16))
        return _SEPARATOR_ESCAPES[escape]

    return _SEPARATOR_ESCAPE_RE.sub(_replace, separator)


def join_keywords(keywords: Iterable[str], separator: str | None = None) -> str:
    """Join keywords with an unescaped separator (default ``,``)."""
    sep = "," if separator is None else _unescape_separator(separator)
    return sep.join(keywords)


def _stringify(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)):
        return ",".join(str(item) for item in value)
    return str(value)


def _camel_words(text: str) -> str:
    return re.sub(r" .", lambda m: m.group(0).strip().upper(), text)


def _substitute_field(template: str, key: str, value: str) -> str:
    camel = _camel_words(value)
    replacements = {
        f"{{{key}}}": value,
        f"{{{key}:kebab}}": value.replace(" ", "-").lower(),
        f"{{{key}:snake}}": value.replace(" ", "_").lower(),
        f"{{{key}:camel}}": camel[:1].lower() + camel[1:],
        f"{{{key}:pascal}}": camel[:1].upper() + camel[1:],
    }
    for placeholder, replacement in replacements.items():
        template = template.replace(placeholder, replacement)
    return template


def _keywords_of(context: TemplateContext) -> tuple[str, ...]:
    keywords = context.get("keywords") or ()
    if isinstance(keywords, str):
        return (keywords,)
    return tuple(keywords)


def fill(
    template: str,
    context: TemplateContext,
    disallowed_chars: Iterable[str] | None = None,
    now: datetime | None = None,
) -> str:
    """Substitute placeholders in ``template`` from ``context``.

    Args:
        template: String containing ``{placeholder}`` tokens.
        context: Article metadata keyed by placeholder name.
        disallowed_chars: When given, field values are passed through
            :func:`sanitize_filename` with these characters before insertion.
        now: Instant used for every ``{date:...}`` token in this call.
            Defaults to the current local time, captured once.

    Returns:
        The filled string. Unknown placeholders are removed, never left in.

    """
    if now is None:
        now = datetime.now(timezone.utc).astimezone()
    chars = frozenset(disallowed_chars) if disallowed_chars else None

    result = template
    for key, value in context.items():
        if key in _RESERVED_KEYS:
            continue
        text = _stringify(value)
        if text and chars:
            text = sanitize_filename(text, chars) or ""
        result = _substitute_field(result, key, text)

    result = _DATE_RE.sub(lambda m: format_date(m.group(1), now), result)

    keywords = _keywords_of(context)
    result = _KEYWORDS_RE.sub(lambda m: join_keywords(keywords, m.group(1)), result)

    return _LEFTOVER_RE.sub("", result)

