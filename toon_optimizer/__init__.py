"""toon-optimizer — convert Python values to and from token-efficient TOON text."""

from toon_optimizer.config import DEFAULT_OPTIONS, Dialect, ToonOptions
from toon_optimizer.decoder import decode, is_valid, try_decode
from toon_optimizer.encoder import encode, encode_compact, encode_standard
from toon_optimizer.errors import (
    ConversionError,
    DepthExceededError,
    InvalidFormatError,
    ToonError,
    ToonParseError,
    ToonSerializationError,
)
from toon_optimizer.fields import (
    FieldDescriptor,
    Kind,
    Schema,
    TypeSpec,
    register_schema,
    schema_for,
    unregister_schema,
)
from toon_optimizer.stats import (
    TokenComparisonStats,
    TokenReductionStats,
    compare_formats,
    count_tokens,
    estimate_tokens,
    token_reduction,
)
from toon_optimizer.streams import dump, dump_async, load, load_async

__all__ = [
    "encode",
    "encode_standard",
    "encode_compact",
    "decode",
    "try_decode",
    "is_valid",
    "dump",
    "load",
    "dump_async",
    "load_async",
    "ToonOptions",
    "DEFAULT_OPTIONS",
    "Dialect",
    "ToonError",
    "ToonSerializationError",
    "DepthExceededError",
    "ToonParseError",
    "InvalidFormatError",
    "ConversionError",
    "Kind",
    "TypeSpec",
    "FieldDescriptor",
    "Schema",
    "register_schema",
    "unregister_schema",
    "schema_for",
    "estimate_tokens",
    "count_tokens",
    "token_reduction",
    "compare_formats",
    "TokenReductionStats",
    "TokenComparisonStats",
]
