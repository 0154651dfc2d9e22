"""Error hierarchy shared by the encoders and the decoder.

Every failure raised by the core is a ``ToonError``.  Unexpected exceptions
are wrapped at the public entry points so callers only ever need to catch
this one family.
"""


class ToonError(Exception):
    """Base class for all TOON conversion failures."""


class ToonSerializationError(ToonError):
    """Encoding a value failed.

    Attributes:
        target_type: Type of the value that could not be encoded, if known.
    """

    def __init__(self, message: str, target_type: type | None = None):
        super().__init__(message)
        self.target_type = target_type


class DepthExceededError(ToonSerializationError):
    """Recursion went deeper than ``ToonOptions.max_depth``."""

    def __init__(self, max_depth: int, target_type: type | None = None):
        super().__init__(f"Maximum depth of {max_depth} exceeded", target_type)
        self.max_depth = max_depth


class ToonParseError(ToonError):
    """Decoding text failed.

    Attributes:
        position: Offset into the input where the problem was found, or -1.
    """

    def __init__(self, message: str, position: int = -1):
        super().__init__(message)
        self.position = position


class InvalidFormatError(ToonParseError):
    """Input matches neither the array nor the object grammar."""


class ConversionError(ToonParseError):
    """A scalar token could not be coerced to its target kind."""

    def __init__(self, value: str, kind: str, reason: str = ""):
        msg = f"Cannot convert {value!r} to {kind}"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)
        self.value = value
        self.kind = kind
