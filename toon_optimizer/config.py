"""Configuration for TOON encoding and decoding.

Options can be built directly, or loaded from:
  1. Environment variables (``TOON_DELIMITER``, ``TOON_MAX_DEPTH``, ...)
  2. A JSON or YAML file named by ``TOON_CONFIG``
"""

import dataclasses
import enum
import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

_FALSE_WORDS = ("false", "0", "no")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() not in _FALSE_WORDS


@dataclass(frozen=True)
class ToonOptions:
    """Immutable formatting knobs shared by both dialects."""

    delimiter: str = "|"
    array_delimiter: str = ","
    prefix: str = "~"
    max_depth: int = 10
    use_header_row: bool = True
    include_nulls: bool = False
    datetime_format: str = "%Y-%m-%dT%H:%M:%S"
    case_insensitive: bool = True

    def __post_init__(self):
        for name in ("delimiter", "array_delimiter", "prefix"):
            val = getattr(self, name)
            if not isinstance(val, str) or len(val) != 1:
                raise ValueError(f"{name} must be a single character, got {val!r}")
        if len({self.delimiter, self.array_delimiter, self.prefix}) != 3:
            raise ValueError(
                "delimiter, array_delimiter and prefix must be distinct, got "
                f"{self.delimiter!r}, {self.array_delimiter!r}, {self.prefix!r}"
            )
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {self.max_depth}")

    def replace(self, **changes: Any) -> "ToonOptions":
        """Return a copy with *changes* applied, validated like a new instance."""
        return dataclasses.replace(self, **changes)

    @classmethod
    def from_env(cls) -> "ToonOptions":
        """Build options from ``TOON_*`` env vars; unset vars keep defaults."""
        defaults = cls()
        return cls(
            delimiter=os.environ.get("TOON_DELIMITER", defaults.delimiter),
            array_delimiter=os.environ.get("TOON_ARRAY_DELIMITER", defaults.array_delimiter),
            prefix=os.environ.get("TOON_PREFIX", defaults.prefix),
            max_depth=int(os.environ.get("TOON_MAX_DEPTH", str(defaults.max_depth))),
            use_header_row=_env_bool("TOON_USE_HEADER_ROW", defaults.use_header_row),
            include_nulls=_env_bool("TOON_INCLUDE_NULLS", defaults.include_nulls),
            datetime_format=os.environ.get("TOON_DATETIME_FORMAT", defaults.datetime_format),
            case_insensitive=_env_bool("TOON_CASE_INSENSITIVE", defaults.case_insensitive),
        )

    @classmethod
    def from_file(cls, path: str | Path) -> "ToonOptions":
        """Load options from a JSON or YAML mapping whose keys are field names."""
        path = Path(path)
        text = path.read_text()
        if path.suffix.lower() == ".json":
            raw = json.loads(text)
        else:
            raw = yaml.safe_load(text)
        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise ValueError(f"{path}: expected a mapping of option names, got {type(raw).__name__}")

        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(raw) - known)
        if unknown:
            raise ValueError(
                f"{path}: unknown option(s) {', '.join(unknown)}. "
                f"Valid options are: {', '.join(sorted(known))}"
            )
        return cls(**raw)

    @classmethod
    def load(cls) -> "ToonOptions":
        """Load options: ``TOON_CONFIG`` file takes priority, falls back to env vars."""
        config_path = os.environ.get("TOON_CONFIG")
        if config_path:
            return cls.from_file(config_path)
        return cls.from_env()


DEFAULT_OPTIONS = ToonOptions()


class Dialect(str, enum.Enum):
    """TOON text grammar."""

    STANDARD = "standard"
    COMPACT = "compact"
