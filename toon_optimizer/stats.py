"""Token estimates and JSON-vs-TOON comparison reports.

Two counting methods:
  * ``estimate``: structural characters ``{}[]":,|~`` count as one token
    each, everything else as one token per four characters.
  * ``tiktoken``: exact count with the ``cl100k_base`` encoding.
"""

import dataclasses
import enum
import functools
import json
import uuid
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Callable

from toon_optimizer.config import Dialect, ToonOptions
from toon_optimizer.encoder import encode
from toon_optimizer.fields import schema_of

STRUCTURAL_CHARS = frozenset('{}[]":,|~')


def estimate_tokens(text: str) -> int:
    if not text:
        return 0
    special = sum(1 for ch in text if ch in STRUCTURAL_CHARS)
    return special + (len(text) - special) // 4


@functools.lru_cache(maxsize=1)
def _encoding():
    import tiktoken

    return tiktoken.get_encoding("cl100k_base")


def count_tokens(text: str) -> int:
    if not text:
        return 0
    return len(_encoding().encode(text))


TOKEN_COUNTERS: dict[str, Callable[[str], int]] = {
    "estimate": estimate_tokens,
    "tiktoken": count_tokens,
}


def _counter(method: str) -> Callable[[str], int]:
    try:
        return TOKEN_COUNTERS[method]
    except KeyError:
        raise ValueError(
            f"Unknown token counting method {method!r}; expected one of {', '.join(TOKEN_COUNTERS)}"
        ) from None


# ── JSON baseline ───────────────────────────────────────────────────────────

def _json_default(obj: Any) -> Any:
    if isinstance(obj, enum.Enum):
        return obj.name
    if isinstance(obj, (datetime, date, time)):
        return obj.isoformat()
    if isinstance(obj, (uuid.UUID, Decimal)):
        return str(obj)
    if isinstance(obj, (set, frozenset)):
        return list(obj)
    if dataclasses.is_dataclass(obj) or hasattr(obj, "__dict__"):
        return {fd.name: fd.get(obj) for fd in schema_of(obj).readable()}
    if hasattr(obj, "__iter__"):
        return list(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def to_json(value: Any, indent: int | None = None) -> str:
    """Serialise *value* to JSON the same way objects are read for TOON."""
    separators = (",", ":") if indent is None else (",", ": ")
    return json.dumps(value, default=_json_default, separators=separators, indent=indent, ensure_ascii=False)


# ── reports ─────────────────────────────────────────────────────────────────

def _pct(saved: int, total: int) -> float:
    return saved / total * 100 if total > 0 else 0.0


@dataclass
class TokenReductionStats:
    """Token usage of one TOON rendering against JSON."""

    json_tokens: int = 0
    toon_tokens: int = 0
    json_output: str = ""
    toon_output: str = ""
    method: str = "estimate"

    @property
    def tokens_saved(self) -> int:
        return self.json_tokens - self.toon_tokens

    @property
    def reduction_percent(self) -> float:
        return _pct(self.tokens_saved, self.json_tokens)

    def __str__(self) -> str:
        return (
            f"JSON: {self.json_tokens} tokens, TOON: {self.toon_tokens} tokens, "
            f"Saved: {self.tokens_saved} ({self.reduction_percent:.1f}%)"
        )


@dataclass
class TokenComparisonStats:
    """Token usage of JSON, Standard TOON and Compact TOON side by side."""

    json_tokens: int = 0
    standard_tokens: int = 0
    compact_tokens: int = 0
    json_output: str = ""
    standard_output: str = ""
    compact_output: str = ""
    method: str = "estimate"

    @property
    def standard_saved(self) -> int:
        return self.json_tokens - self.standard_tokens

    @property
    def compact_saved(self) -> int:
        return self.json_tokens - self.compact_tokens

    @property
    def compact_vs_standard_saved(self) -> int:
        return self.standard_tokens - self.compact_tokens

    @property
    def standard_reduction_percent(self) -> float:
        return _pct(self.standard_saved, self.json_tokens)

    @property
    def compact_reduction_percent(self) -> float:
        return _pct(self.compact_saved, self.json_tokens)

    def __str__(self) -> str:
        return (
            f"JSON: {self.json_tokens} tokens | "
            f"Standard TOON: {self.standard_tokens} ({self.standard_reduction_percent:.1f}% saved) | "
            f"Compact TOON: {self.compact_tokens} ({self.compact_reduction_percent:.1f}% saved)"
        )


def token_reduction(
    value: Any,
    options: ToonOptions | None = None,
    dialect: Dialect | str = Dialect.COMPACT,
    method: str = "estimate",
) -> TokenReductionStats:
    """Compare the JSON and TOON renderings of *value*."""
    count = _counter(method)
    if value is None:
        return TokenReductionStats(json_output="null", method=method)

    json_output = to_json(value)
    toon_output = encode(value, dialect, options)
    return TokenReductionStats(
        json_tokens=count(json_output),
        toon_tokens=count(toon_output),
        json_output=json_output,
        toon_output=toon_output,
        method=method,
    )


def compare_formats(value: Any, options: ToonOptions | None = None, method: str = "estimate") -> TokenComparisonStats:
    """Compare JSON, Standard TOON and Compact TOON renderings of *value*."""
    count = _counter(method)
    if value is None:
        return TokenComparisonStats(json_output="null", method=method)

    json_output = to_json(value)
    standard = encode(value, Dialect.STANDARD, options)
    compact = encode(value, Dialect.COMPACT, options)
    return TokenComparisonStats(
        json_tokens=count(json_output),
        standard_tokens=count(standard),
        compact_tokens=count(compact),
        json_output=json_output,
        standard_output=standard,
        compact_output=compact,
        method=method,
    )
