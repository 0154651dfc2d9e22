"""
decoder.py — TOON text → Python values.

The target shape (a type, ``Schema`` or ``TypeSpec``) drives parsing:
sequence targets expect an array, object targets expect field/value pairs,
scalar targets are coerced directly.  Records are assembled through the
schema's builder, so no target type is ever inspected while parsing.
"""

import logging
import re
import uuid
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, NamedTuple

from toon_optimizer.config import DEFAULT_OPTIONS, Dialect, ToonOptions
from toon_optimizer.errors import ConversionError, InvalidFormatError, ToonError, ToonParseError
from toon_optimizer.escaping import INT_RE, NUMBER_RE, matching_bracket, split_unquoted, unquote
from toon_optimizer.fields import (
    ANY_SEQUENCE_SPEC,
    RECORD_SCHEMA,
    Kind,
    Schema,
    TypeSpec,
    spec_for,
)

logger = logging.getLogger("toon_optimizer")

_COMPOUND_KINDS = (Kind.OBJECT, Kind.SEQUENCE)
_STANDARD_ARRAY_RE = re.compile(r"^\[(\d+)\](\{.*\})?:(?: (.*))?$")
_STANDARD_FIELD_ARRAY_RE = re.compile(r"^([^:\[\s][^:\[]*?)(\[\d+\].*)$")


# ── scalar coercion ─────────────────────────────────────────────────────────

def _parse_bool(token: str) -> bool:
    t = token.strip().lower()
    if t == "true":
        return True
    if t == "false":
        return False
    raise ValueError("expected 'true' or 'false'")


def _parse_datetime(token: str, fmt: str) -> datetime:
    token = token.strip()
    try:
        return datetime.strptime(token, fmt)
    except ValueError:
        return datetime.fromisoformat(token.replace("Z", "+00:00"))


def _parse_date(token: str, fmt: str) -> date:
    try:
        return date.fromisoformat(token.strip())
    except ValueError:
        return _parse_datetime(token, fmt).date()


def _parse_enum(token: str, enum_type: type) -> Any:
    wanted = token.strip().casefold()
    for member in enum_type:
        if member.name.casefold() == wanted:
            return member
    for member in enum_type:
        if str(member.value).casefold() == wanted:
            return member
    raise ValueError(f"not a member of {enum_type.__name__}")


def _convert_scalar(token: str, spec: TypeSpec, options: ToonOptions) -> Any:
    kind = spec.kind
    if kind is Kind.TEXT:
        return token
    if kind is Kind.INT:
        return int(token)
    if kind is Kind.FLOAT:
        return float(token)
    if kind is Kind.DECIMAL:
        return Decimal(token.strip())
    if kind is Kind.BOOL:
        return _parse_bool(token)
    if kind is Kind.DATETIME:
        return _parse_datetime(token, options.datetime_format)
    if kind is Kind.DATE:
        return _parse_date(token, options.datetime_format)
    if kind is Kind.TIME:
        return time.fromisoformat(token.strip())
    if kind is Kind.UUID:
        return uuid.UUID(token.strip())
    if kind is Kind.ENUM:
        return _parse_enum(token, spec.enum_type)
    raise ValueError(f"no scalar conversion for {kind.value}")


def _looks_compound(token: str, options: ToonOptions) -> bool:
    rest = token[1:]
    return rest.startswith("[") or rest == "{}" or options.delimiter in rest


def infer_scalar(token: str) -> Any:
    """Best-effort typing for untyped record values: bool, int, float or text."""
    lowered = token.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    if INT_RE.match(token):
        return int(token)
    if NUMBER_RE.match(token):
        return float(token)
    return token


def coerce(raw: str, spec: TypeSpec, options: ToonOptions, dialect: Dialect = Dialect.COMPACT) -> Any:
    """Convert one scalar token to *spec*'s kind.

    Tokens that start with the prefix are decoded recursively when the
    target is compound.  In the Standard dialect nested values arrive as
    quoted text and are decoded after unquoting.

    Raises:
        ConversionError: The token does not parse as the target kind.
    """
    token, quoted = unquote(raw, dialect)
    kind = spec.kind

    if not quoted:
        if dialect is Dialect.STANDARD and token == "null":
            return None
        if token == "":
            return spec.zero()

    if kind is Kind.ANY:
        if quoted:
            return token
        if dialect is Dialect.COMPACT and token.startswith(options.prefix) and _looks_compound(token, options):
            return decode_compact(token, spec, options)
        return infer_scalar(token)

    if kind in _COMPOUND_KINDS:
        if dialect is Dialect.STANDARD and quoted:
            return decode_standard(token, spec, options)
        if token.startswith(options.prefix):
            return decode_compact(token, spec, options)
        raise ConversionError(token, spec.describe(), "expected a nested TOON value")

    if kind is Kind.TEXT:
        return token
    try:
        return _convert_scalar(token, spec, options)
    except (ValueError, ArithmeticError) as exc:
        raise ConversionError(token, spec.describe(), str(exc)) from exc


def _collect(items: list, spec: TypeSpec) -> Any:
    if spec.container is list:
        return items
    return spec.container(items)


def _record_schema(element: TypeSpec, text: str) -> Schema:
    if element.kind is Kind.OBJECT:
        return element.schema()
    if element.kind is Kind.ANY:
        return RECORD_SCHEMA
    raise InvalidFormatError(
        f"Header row needs record elements, target element is {element.describe()}: {text[:40]!r}"
    )


# ── compact dialect ─────────────────────────────────────────────────────────

def _boundaries(options: ToonOptions) -> str:
    return f"{options.delimiter}{options.array_delimiter}[:"


def _split(text: str, sep: str, options: ToonOptions) -> list[str]:
    return split_unquoted(text, sep, prefix=options.prefix, boundaries=_boundaries(options))


def decode_compact(text: str, spec: TypeSpec, options: ToonOptions = DEFAULT_OPTIONS) -> Any:
    """Parse Compact-dialect *text* into *spec*.  A leading prefix is optional."""
    text = text.strip()
    if spec.kind not in _COMPOUND_KINDS and spec.kind is not Kind.ANY:
        return coerce(text, spec, options)

    if text.startswith(options.prefix):
        text = text[1:]
    if spec.kind is Kind.ANY:
        if text.startswith("["):
            return _compact_array(text, ANY_SEQUENCE_SPEC, options)
        return _compact_object(text, RECORD_SCHEMA, options)
    if spec.kind is Kind.SEQUENCE:
        return _compact_array(text, spec, options)
    return _compact_object(text, spec.schema(), options)


def _compact_array(text: str, spec: TypeSpec, options: ToonOptions) -> Any:
    if not text.startswith("["):
        raise InvalidFormatError(f"Invalid TOON array format: expected '[' in {text[:40]!r}", position=0)
    end = matching_bracket(text, 0, _boundaries(options))
    if end < 0:
        raise InvalidFormatError("Invalid TOON array format: unterminated '['", position=0)

    element = spec.element or TypeSpec(Kind.ANY, nullable=True)
    inner = text[1:end]
    tail = text[end + 1:]

    if tail.startswith(":"):
        schema = _record_schema(element, text)
        headers = [h.strip() for h in _split(inner, options.delimiter, options)]
        data = tail[1:]
        rows = _split(data, options.array_delimiter, options) if data else []
        items = [_compact_row(row, headers, schema, options) for row in rows]
        return _collect(items, spec)

    if tail.strip():
        raise InvalidFormatError(
            f"Invalid TOON array format: unexpected text after ']': {tail[:40]!r}", position=end + 1
        )
    if not inner:
        return _collect([], spec)
    tokens = _split(inner, options.array_delimiter, options)
    return _collect([coerce(tok.strip(), element, options) for tok in tokens], spec)


def _compact_row(row: str, headers: list[str], schema: Schema, options: ToonOptions) -> Any:
    builder = schema.new()
    values = _split(row, options.delimiter, options)
    for header, raw in zip(headers, values):
        fd = schema.lookup(header, options.case_insensitive)
        if fd is None or fd.set is None:
            continue
        fd.set(builder, coerce(raw, fd.spec, options))
    return schema.build(builder)


def _pair_name(pair: str, options: ToonOptions) -> str | None:
    idx = pair.find(options.delimiter)
    if idx <= 0:
        return None
    return pair[:idx]


def _runs_on(raw: str, kind: Kind, options: ToonOptions) -> bool:
    """True when *raw* opens a nested value whose text contains row delimiters."""
    if not raw.startswith(options.prefix):
        return False
    rest = raw[1:]
    if kind is Kind.OBJECT:
        return not rest.startswith("[")
    if kind is Kind.SEQUENCE and rest.startswith("["):
        end = matching_bracket(rest, 0, _boundaries(options))
        return end >= 0 and rest[end + 1:end + 2] == ":"
    return False


def _compact_object(text: str, schema: Schema, options: ToonOptions) -> Any:
    builder = schema.new()
    if text == "{}":
        return schema.build(builder)

    pairs = _split(text, options.array_delimiter, options)
    i = 0
    while i < len(pairs):
        pair = pairs[i]
        i += 1
        name = _pair_name(pair, options)
        if name is None:
            continue
        fd = schema.lookup(name, options.case_insensitive)
        if fd is None or fd.set is None:
            continue

        raw = pair[len(name) + 1:]
        if _runs_on(raw, fd.kind, options):
            # nested pairs or rows run on until one names a field of this object again
            parts = [raw]
            while i < len(pairs):
                nxt = _pair_name(pairs[i], options)
                if nxt is not None and schema.lookup(nxt, options.case_insensitive) is not None:
                    break
                parts.append(pairs[i])
                i += 1
            raw = options.array_delimiter.join(parts)
        fd.set(builder, coerce(raw, fd.spec, options))
    return schema.build(builder)


# ── standard dialect ────────────────────────────────────────────────────────

class _Line(NamedTuple):
    indent: int
    text: str
    number: int


def _split_lines(text: str) -> list[_Line]:
    lines = []
    for number, line in enumerate(text.splitlines(), start=1):
        stripped = line.strip()
        if not stripped:
            continue
        lines.append(_Line(len(line) - len(line.lstrip(" ")), stripped, number))
    return lines


def decode_standard(text: str, spec: TypeSpec, options: ToonOptions = DEFAULT_OPTIONS) -> Any:
    """Parse Standard-dialect *text* into *spec*."""
    lines = _split_lines(text)
    if not lines:
        return None
    return _standard_value(lines, spec, options)


def _standard_value(lines: list[_Line], spec: TypeSpec, options: ToonOptions) -> Any:
    head = lines[0]
    kind = spec.kind
    if kind is Kind.ANY:
        if _STANDARD_ARRAY_RE.match(head.text):
            return _standard_array(head, lines[1:], ANY_SEQUENCE_SPEC, options)
        if len(lines) == 1 and (head.text.startswith('"') or ":" not in head.text) and head.text != "{}":
            return coerce(head.text, spec, options, Dialect.STANDARD)
        return _standard_object(lines, RECORD_SCHEMA, options)
    if kind is Kind.SEQUENCE:
        return _standard_array(head, lines[1:], spec, options)
    if kind is Kind.OBJECT:
        return _standard_object(lines, spec.schema(), options)
    if len(lines) > 1:
        raise InvalidFormatError(
            f"Expected a single {spec.describe()} value, found {len(lines)} lines", position=head.number
        )
    return coerce(head.text, spec, options, Dialect.STANDARD)


def _standard_array(head: _Line, rows: list[_Line], spec: TypeSpec, options: ToonOptions) -> Any:
    m = _STANDARD_ARRAY_RE.match(head.text)
    if m is None:
        raise InvalidFormatError(f"Invalid TOON array header: {head.text!r}", position=head.number)
    count = int(m.group(1))
    fields_part, inline = m.group(2), m.group(3)
    element = spec.element or TypeSpec(Kind.ANY, nullable=True)

    if fields_part is not None:
        schema = _record_schema(element, head.text)
        headers = [h.strip() for h in split_unquoted(fields_part[1:-1], ",")]
        items = [_standard_row(row, headers, schema, options) for row in rows]
    else:
        if rows:
            raise InvalidFormatError(
                f"Unexpected indented line after inline array: {rows[0].text!r}", position=rows[0].number
            )
        tokens = split_unquoted(inline, ",") if inline else []
        items = [coerce(tok.strip(), element, options, Dialect.STANDARD) for tok in tokens]

    if len(items) != count:
        raise InvalidFormatError(
            f"Array declares {count} items but {len(items)} were found", position=head.number
        )
    return _collect(items, spec)


def _standard_row(row: _Line, headers: list[str], schema: Schema, options: ToonOptions) -> Any:
    builder = schema.new()
    cells = split_unquoted(row.text, ",")
    for header, raw in zip(headers, cells):
        fd = schema.lookup(header, options.case_insensitive)
        if fd is None or fd.set is None:
            continue
        fd.set(builder, coerce(raw, fd.spec, options, Dialect.STANDARD))
    return schema.build(builder)


def _standard_object(lines: list[_Line], schema: Schema, options: ToonOptions) -> Any:
    builder = schema.new()
    if len(lines) == 1 and lines[0].text == "{}":
        return schema.build(builder)

    base = lines[0].indent
    i = 0
    while i < len(lines):
        line = lines[i]
        j = i + 1
        while j < len(lines) and lines[j].indent > line.indent:
            j += 1
        children = lines[i + 1:j]
        i = j
        if line.indent != base:
            raise InvalidFormatError(f"Unexpected indentation: {line.text!r}", position=line.number)

        m = _STANDARD_FIELD_ARRAY_RE.match(line.text)
        if m is not None:
            name, rest = m.group(1), m.group(2)
        else:
            name, sep, rest = line.text.partition(":")
            if not sep:
                raise InvalidFormatError(f"Expected 'name: value', got {line.text!r}", position=line.number)
            rest = rest.strip()

        fd = schema.lookup(name.strip(), options.case_insensitive)
        if fd is None or fd.set is None:
            continue
        fd.set(builder, _standard_field(m is not None, rest, line, children, fd.spec, options))
    return schema.build(builder)


def _standard_field(is_array: bool, rest: str, line: _Line, children: list[_Line], spec: TypeSpec, options: ToonOptions) -> Any:
    if is_array:
        if spec.kind is Kind.ANY:
            spec = ANY_SEQUENCE_SPEC
        elif spec.kind is not Kind.SEQUENCE:
            raise ConversionError(line.text, spec.describe(), "got an array")
        return _standard_array(line._replace(text=rest), children, spec, options)

    if rest:
        if children:
            raise InvalidFormatError(f"Unexpected indented block under {line.text!r}", position=line.number)
        return coerce(rest, spec, options, Dialect.STANDARD)

    # "name:" opens a nested object (possibly empty)
    if spec.kind is Kind.ANY:
        schema = RECORD_SCHEMA
    elif spec.kind is Kind.OBJECT:
        schema = spec.schema()
    else:
        raise ConversionError(line.text, spec.describe(), "got a nested object")
    if not children:
        return schema.build(schema.new())
    return _standard_object(children, schema, options)


# ── public entry points ─────────────────────────────────────────────────────

def decode(
    text: str | None,
    shape: Any,
    options: ToonOptions | None = None,
    dialect: Dialect | str = Dialect.COMPACT,
) -> Any:
    """Parse TOON *text* into *shape*.

    Args:
        text: TOON text; blank text yields None.
        shape: Target type (``int``, a dataclass, ``list[User]``, ``dict``, ...),
            a ``Schema`` or a ``TypeSpec``.
        options: Parsing options (defaults when None).
        dialect: Grammar of *text*.

    Raises:
        InvalidFormatError: Text matches no array/object grammar.
        ConversionError: A token cannot be converted to its field's kind.
        ToonParseError: Any other parse failure, wrapping the cause.
        TypeError: *shape* cannot be decoded into.
    """
    dialect = Dialect(dialect)
    options = options or DEFAULT_OPTIONS
    spec = spec_for(shape)
    if text is None or not text.strip():
        return None

    try:
        if dialect is Dialect.STANDARD:
            value = decode_standard(text, spec, options)
        else:
            value = decode_compact(text, spec, options)
    except ToonError:
        raise
    except Exception as exc:
        raise ToonParseError(
            f"Failed to parse TOON as {spec.describe()}: {exc} (input: {text.strip()[:60]!r})"
        ) from exc

    logger.debug(
        "action=decode dialect=%s target=%s chars=%d",
        dialect.value, spec.describe(), len(text),
    )
    return value


def try_decode(
    text: str | None,
    shape: Any,
    options: ToonOptions | None = None,
    dialect: Dialect | str = Dialect.COMPACT,
) -> tuple[bool, Any]:
    """Like ``decode()`` but returns ``(ok, value)`` instead of raising."""
    try:
        return True, decode(text, shape, options, dialect)
    except (ToonError, TypeError, ValueError) as exc:
        logger.debug("action=try_decode outcome=failed error=%s", exc)
        return False, None


def is_valid(text: str | None, options: ToonOptions | None = None) -> bool:
    """Cheap syntactic check for Compact text; not a full parse."""
    options = options or DEFAULT_OPTIONS
    if text is None or not text.strip():
        return False
    text = text.strip()
    if not text.startswith(options.prefix):
        return False
    rest = text[1:]
    return rest.startswith("[") or options.delimiter in rest
