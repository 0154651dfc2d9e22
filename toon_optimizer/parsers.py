"""Input readers for the command line.

``encode`` and ``compare`` accept JSON, YAML or CSV documents and turn them
into plain Python data before it is converted.  More formats can be added
with ``register_parser()``.
"""

import csv
import io
import json
from typing import Any, Callable, NamedTuple

import yaml

from toon_optimizer.decoder import infer_scalar


class Parser(NamedTuple):
    """A pluggable input reader.

    Attributes:
        name: Identifier used by ``--format`` and in error messages.
        try_parse: ``(text) -> (data,) | None``; ``None`` means "not my format",
            so a document that parses to null is still distinguishable.
        normalize: Optional post-parse transform ``(data) -> data``.
    """
    name: str
    try_parse: Callable[[str], tuple[Any] | None]
    normalize: Callable[[Any], Any] | None = None


# ── built-in parsers ─────────────────────────────────────────────────────

def _try_json(text: str) -> tuple[Any] | None:
    try:
        return (json.loads(text),)
    except (json.JSONDecodeError, TypeError):
        return None


def _try_yaml(text: str) -> tuple[Any] | None:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError:
        return None
    # plain scalars parse as YAML too; only structured documents count
    if isinstance(data, (dict, list)):
        return (data,)
    return None


def _try_csv(text: str) -> tuple[Any] | None:
    """Read delimited text with a header row into a list of dicts."""
    if len(text.strip().splitlines()) < 2:
        return None
    try:
        dialect = csv.Sniffer().sniff(text[:8192], delimiters=",\t;")
    except csv.Error:
        return None

    reader = csv.DictReader(io.StringIO(text), dialect=dialect)
    if not reader.fieldnames or len(reader.fieldnames) < 2:
        return None
    rows = list(reader)
    return (rows,) if rows else None


def _normalize_csv(rows: list[dict[str, str]]) -> list[dict[str, Any]]:
    """Type CSV cells the same way untyped TOON records are typed."""
    return [
        {key: None if cell in (None, "") else infer_scalar(cell) for key, cell in row.items()}
        for row in rows
    ]


# ── registry ─────────────────────────────────────────────────────────────

PARSER_REGISTRY: list[Parser] = [
    Parser(name="json", try_parse=_try_json),
    Parser(name="yaml", try_parse=_try_yaml),
    Parser(name="csv", try_parse=_try_csv, normalize=_normalize_csv),
]


def register_parser(parser: Parser, *, priority: int | None = None) -> None:
    """Add *parser* at *priority* (0 = tried first), or last when None."""
    if priority is None:
        PARSER_REGISTRY.append(parser)
    else:
        PARSER_REGISTRY.insert(priority, parser)


def parser_names() -> list[str]:
    return [p.name for p in PARSER_REGISTRY]


def _run(parser: Parser, text: str) -> tuple[Any] | None:
    result = parser.try_parse(text)
    if result is not None and parser.normalize is not None:
        result = (parser.normalize(result[0]),)
    return result


# ── public entry point ───────────────────────────────────────────────────

def parse_input(text: str, *, format_hint: str | None = None) -> tuple[Any, str]:
    """Parse *text* with the first registered parser that accepts it.

    Args:
        text: Raw document.
        format_hint: When set, only that parser is tried.

    Returns:
        ``(data, format_name)``.

    Raises:
        ValueError: Unknown *format_hint*, or nothing could parse the input.
    """
    if format_hint is not None:
        for p in PARSER_REGISTRY:
            if p.name == format_hint:
                result = _run(p, text)
                if result is None:
                    raise ValueError(f"Input is not valid {format_hint}")
                return result[0], p.name
        raise ValueError(f"Unknown input format {format_hint!r}; expected one of {', '.join(parser_names())}")

    for p in PARSER_REGISTRY:
        result = _run(p, text)
        if result is not None:
            return result[0], p.name

    raise ValueError(f"Input is not valid {', '.join(parser_names())}")
