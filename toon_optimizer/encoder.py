"""
encoder.py — Python values → TOON text.

Two dialects share the classifier and scalar formatting:

  Standard (indented, schema in braces):
      [2]{Age,City,Name}:
        30,NYC,Alice
        25,LA,Bob

  Compact (single line, prefix + pipes):
      ~[Age|City|Name]:30|NYC|Alice,25|LA|Bob

Both recurse with depth+1 for every nested compound value and fail with
DepthExceededError once depth passes ``ToonOptions.max_depth``.
"""

import logging
from typing import Any

from toon_optimizer.classifier import Classified, Shape, classify, is_primitive, is_sequence
from toon_optimizer.config import DEFAULT_OPTIONS, Dialect, ToonOptions
from toon_optimizer.errors import DepthExceededError, ToonError, ToonSerializationError
from toon_optimizer.escaping import format_scalar, quote_standard

logger = logging.getLogger("toon_optimizer")

INDENT = "  "
EMPTY_OBJECT = "{}"
STANDARD_ROW_DELIMITER = ","


def _check_depth(value: Any, options: ToonOptions, depth: int) -> None:
    if depth > options.max_depth:
        raise DepthExceededError(options.max_depth, type(value))


# ── standard dialect ────────────────────────────────────────────────────────

def encode_standard(value: Any, options: ToonOptions = DEFAULT_OPTIONS, depth: int = 0) -> str:
    """Render *value* in the Standard dialect.

    Continuation lines carry their own indentation (two spaces per level);
    the first line never does, so callers can place it after a field name.
    """
    _check_depth(value, options, depth)
    if value is None:
        return ""

    c = classify(value)
    if c.shape is Shape.PRIMITIVE:
        return format_scalar(value, options, Dialect.STANDARD)
    if c.shape is Shape.PRIMITIVE_ARRAY:
        if not c.items:
            return "[0]:"
        cells = [_standard_inline(item, options, depth) for item in c.items]
        return f"[{len(c.items)}]: {STANDARD_ROW_DELIMITER.join(cells)}"
    if c.shape is Shape.RECORD_ARRAY:
        return _standard_table(c, options, depth)
    return _standard_object(value, c, options, depth)


def _standard_inline(item: Any, options: ToonOptions, depth: int) -> str:
    if item is None:
        return "null"
    return _standard_cell(item, options, depth)


def _standard_cell(value: Any, options: ToonOptions, depth: int) -> str:
    """One comma-separated cell; nested values are embedded as quoted text."""
    if value is None:
        return ""
    if is_primitive(value):
        return format_scalar(value, options, Dialect.STANDARD)
    # first line indented like the continuation lines
    nested = encode_standard(value, options, depth + 1)
    return quote_standard(INDENT * (depth + 1) + nested)


def _standard_table(c: Classified, options: ToonOptions, depth: int) -> str:
    if not c.fields:
        return "[0]:"
    names = STANDARD_ROW_DELIMITER.join(fd.name for fd in c.fields)
    lines = [f"[{len(c.items)}]{{{names}}}:"]
    indent = INDENT * (depth + 1)
    for item in c.items:
        if item is None:
            cells = [""] * len(c.fields)
        else:
            cells = [_standard_cell(fd.get(item), options, depth) for fd in c.fields]
        lines.append(indent + STANDARD_ROW_DELIMITER.join(cells))
    return "\n".join(lines)


def _standard_object(obj: Any, c: Classified, options: ToonOptions, depth: int) -> str:
    lines = []
    for fd in c.fields:
        val = fd.get(obj)
        if val is None:
            if options.include_nulls:
                lines.append(f"{fd.name}: null")
            continue
        if is_primitive(val):
            lines.append(f"{fd.name}: {format_scalar(val, options, Dialect.STANDARD)}")
        elif is_sequence(val):
            lines.append(f"{fd.name}{encode_standard(val, options, depth + 1)}")
        else:
            nested = encode_standard(val, options, depth + 1)
            if nested == EMPTY_OBJECT:
                lines.append(f"{fd.name}:")
            else:
                lines.append(f"{fd.name}:\n{INDENT * (depth + 1)}{nested}")

    if not lines:
        return EMPTY_OBJECT
    return f"\n{INDENT * depth}".join(lines)


# ── compact dialect ─────────────────────────────────────────────────────────

def encode_compact(value: Any, options: ToonOptions = DEFAULT_OPTIONS, depth: int = 0) -> str:
    """Render *value* in the Compact dialect (always a single line)."""
    _check_depth(value, options, depth)
    if value is None:
        return ""

    c = classify(value)
    p = options.prefix
    if c.shape is Shape.PRIMITIVE:
        return format_scalar(value, options, Dialect.COMPACT)
    if c.shape is Shape.PRIMITIVE_ARRAY:
        cells = [_compact_cell(item, options, depth) for item in c.items]
        return f"{p}[{options.array_delimiter.join(cells)}]"
    if c.shape is Shape.RECORD_ARRAY:
        return _compact_table(c, options, depth)

    if not c.fields:
        return f"{p}{EMPTY_OBJECT}"
    pairs = []
    for fd in c.fields:
        val = fd.get(value)
        if val is None and not options.include_nulls:
            continue
        pairs.append(f"{fd.name}{options.delimiter}{_compact_cell(val, options, depth)}")
    return p + options.array_delimiter.join(pairs)


def _compact_cell(value: Any, options: ToonOptions, depth: int) -> str:
    if value is None:
        return ""
    if is_primitive(value):
        return format_scalar(value, options, Dialect.COMPACT)
    return encode_compact(value, options, depth + 1)


def _compact_table(c: Classified, options: ToonOptions, depth: int) -> str:
    p, d = options.prefix, options.delimiter
    if not c.fields:
        return f"{p}[]"

    rows = []
    for item in c.items:
        if item is None:
            rows.append(d.join("" for _ in c.fields))
        else:
            rows.append(d.join(_compact_cell(fd.get(item), options, depth) for fd in c.fields))

    head = p
    if options.use_header_row:
        head = f"{p}[{d.join(fd.name for fd in c.fields)}]:"
    return head + options.array_delimiter.join(rows)


# ── public entry point ──────────────────────────────────────────────────────

def encode(value: Any, dialect: Dialect | str = Dialect.COMPACT, options: ToonOptions | None = None) -> str:
    """Convert *value* to TOON text.

    Args:
        value: Any supported value; ``None`` encodes to ``""``.
        dialect: ``Dialect.COMPACT`` (default) or ``Dialect.STANDARD``.
        options: Formatting options (defaults when None).

    Raises:
        DepthExceededError: Nesting went past ``options.max_depth``.
        ToonSerializationError: Any other failure, wrapping the cause.
    """
    dialect = Dialect(dialect)
    options = options or DEFAULT_OPTIONS
    if value is None:
        return ""

    try:
        if dialect is Dialect.STANDARD:
            text = encode_standard(value, options)
        else:
            text = encode_compact(value, options)
    except ToonError:
        raise
    except Exception as exc:
        raise ToonSerializationError(
            f"Failed to convert {type(value).__name__} to TOON format: {exc}", type(value)
        ) from exc

    logger.debug(
        "action=encode dialect=%s type=%s chars=%d",
        dialect.value, type(value).__name__, len(text),
    )
    return text
