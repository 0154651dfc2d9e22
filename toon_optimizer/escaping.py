"""Scalar formatting, quoting and quote-aware splitting.

The two dialects quote differently on purpose:

* Standard quotes anything that could be misread when parsed back
  (numbers, ``true``/``false``/``null``, structural characters, edge spaces)
  and backslash-escapes ``\\ " \\n \\r \\t`` inside the quotes.
* Compact quotes only when the text contains a delimiter or bracket or
  starts with a quote, and only escapes the quote character.
"""

import math
import re
from decimal import Decimal
from typing import Any

from toon_optimizer.config import Dialect, ToonOptions
from toon_optimizer.errors import ToonSerializationError
from toon_optimizer.fields import Kind, scalar_kind

QUOTE = '"'
LITERAL_TOKENS = ("true", "false", "null")
NUMBER_RE = re.compile(r"^-?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")
INT_RE = re.compile(r"^-?\d+$")

_STANDARD_SPECIALS = (",", ":", QUOTE, "\\", "\n", "\r", "\t")
_STANDARD_ESCAPES = {"\\": "\\\\", QUOTE: '\\"', "\n": "\\n", "\r": "\\r", "\t": "\\t"}
_STANDARD_UNESCAPES = {"\\": "\\", QUOTE: QUOTE, "n": "\n", "r": "\r", "t": "\t"}


# ── quoting ─────────────────────────────────────────────────────────────────

def needs_standard_quotes(text: str, delimiter: str = "|") -> bool:
    if not text:
        return True
    if text in LITERAL_TOKENS:
        return True
    if text[0] == " " or text[-1] == " " or text[0] == "-":
        return True
    if delimiter in text or any(ch in text for ch in _STANDARD_SPECIALS):
        return True
    return NUMBER_RE.match(text) is not None


def quote_standard(text: str) -> str:
    escaped = "".join(_STANDARD_ESCAPES.get(ch, ch) for ch in text)
    return f"{QUOTE}{escaped}{QUOTE}"


def escape_standard(text: str, options: ToonOptions) -> str:
    if needs_standard_quotes(text, options.delimiter):
        return quote_standard(text)
    return text


def escape_compact(text: str, options: ToonOptions) -> str:
    if (
        options.delimiter in text
        or options.array_delimiter in text
        or text.startswith(QUOTE)
        or "[" in text
        or "]" in text
    ):
        return QUOTE + text.replace(QUOTE, '\\"') + QUOTE
    return text


def unquote(token: str, dialect: Dialect = Dialect.COMPACT) -> tuple[str, bool]:
    """Strip surrounding quotes and undo escapes.

    Returns ``(text, was_quoted)``; unquoted tokens come back unchanged.
    """
    if len(token) < 2 or token[0] != QUOTE or token[-1] != QUOTE:
        return token, False
    inner = token[1:-1]
    if dialect is Dialect.COMPACT:
        return inner.replace('\\"', QUOTE), True

    out: list[str] = []
    chars = iter(inner)
    for ch in chars:
        if ch == "\\":
            nxt = next(chars, "")
            out.append(_STANDARD_UNESCAPES.get(nxt, "\\" + nxt))
        else:
            out.append(ch)
    return "".join(out), True


# ── scalar formatting ───────────────────────────────────────────────────────

def _format_float(value: float) -> str:
    if math.isfinite(value) and value == int(value) and abs(value) < 1e16:
        return str(int(value))
    return repr(value)


def _format_decimal(value: Decimal) -> str:
    if value.is_finite() and value == value.to_integral_value():
        return str(int(value))
    return format(value, "f")


def format_scalar(value: Any, options: ToonOptions, dialect: Dialect = Dialect.COMPACT) -> str:
    """Render a primitive value using the dialect's quoting rules."""
    kind = scalar_kind(value)
    if kind is Kind.TEXT:
        if dialect is Dialect.STANDARD:
            return escape_standard(value, options)
        return escape_compact(value, options)
    if kind is Kind.BOOL:
        return "true" if value else "false"
    if kind is Kind.INT:
        return str(int(value))
    if kind is Kind.FLOAT:
        return _format_float(value)
    if kind is Kind.DECIMAL:
        return _format_decimal(value)
    if kind is Kind.DATETIME:
        return value.strftime(options.datetime_format)
    if kind in (Kind.DATE, Kind.TIME):
        return value.isoformat()
    if kind is Kind.UUID:
        return str(value)
    if kind is Kind.ENUM:
        return value.name
    raise ToonSerializationError(f"{type(value).__name__} is not a TOON scalar", type(value))


# ── splitting ───────────────────────────────────────────────────────────────

def _closing_quote(text: str, start: int, stops: str) -> int:
    """Index of the quote closing the one at *start*, or -1.

    The first unescaped quote after *start* closes the token, and only when
    it ends *text* or is followed by a character in *stops*.
    """
    escaped = False
    for i in range(start + 1, len(text)):
        ch = text[i]
        if escaped:
            escaped = False
        elif ch == "\\":
            escaped = True
        elif ch == QUOTE:
            if i + 1 == len(text) or text[i + 1] in stops:
                return i
            return -1
    return -1


def split_unquoted(text: str, sep: str, prefix: str | None = None, boundaries: str = "") -> list[str]:
    """Split *text* on *sep*, ignoring separators inside quoted tokens.

    A quote only opens a quoted token when it starts the token, i.e. it is
    the first character or follows a character in *boundaries* or *sep*,
    and a closing quote exists.  When *prefix* is given, ``<prefix>[`` at a
    token boundary opens a nested array up to its matching ``]``.  Quotes and
    brackets that are never closed are plain text.
    """
    starts = boundaries + sep
    stops = starts + "]"
    parts: list[str] = []
    token_start = 0
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == QUOTE and (i == token_start or text[i - 1] in starts):
            end = _closing_quote(text, i, stops)
            if end >= 0:
                i = end + 1
                continue
        elif (
            prefix is not None
            and ch == "["
            and i > token_start
            and text[i - 1] == prefix
            and (i - 1 == token_start or text[i - 2] in starts)
        ):
            end = matching_bracket(text, i, starts)
            if end >= 0:
                i = end + 1
                continue
        elif ch == sep:
            parts.append(text[token_start:i])
            token_start = i + 1
        i += 1

    parts.append(text[token_start:])
    return parts


def matching_bracket(text: str, start: int = 0, boundaries: str = "[|,:") -> int:
    """Index of the ``]`` closing the ``[`` at *start*, or -1.  Quoted tokens are skipped."""
    stops = boundaries + "]"
    depth = 0
    i = start
    while i < len(text):
        ch = text[i]
        if ch == QUOTE and i > start and text[i - 1] in boundaries:
            end = _closing_quote(text, i, stops)
            if end >= 0:
                i = end + 1
                continue
        elif ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return -1
