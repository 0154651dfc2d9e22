"""Value classification shared by both encoders."""

import enum
from collections.abc import Iterable, Mapping
from typing import Any, NamedTuple

from toon_optimizer.fields import FieldDescriptor, scalar_kind, schema_of


class Shape(enum.Enum):
    PRIMITIVE = "primitive"
    PRIMITIVE_ARRAY = "primitive_array"
    RECORD_ARRAY = "record_array"
    OBJECT = "object"


class Classified(NamedTuple):
    """Result of ``classify()``.

    Attributes:
        shape: One of the four shape tags.
        items: Materialised elements for the two array shapes, else None.
        fields: Readable fields for ``RECORD_ARRAY`` (taken from the first
            non-null element) and ``OBJECT``; empty otherwise.
    """
    shape: Shape
    items: list | None = None
    fields: tuple[FieldDescriptor, ...] = ()


def is_primitive(value: Any) -> bool:
    return scalar_kind(value) is not None


def is_sequence(value: Any) -> bool:
    """True for iterables that are neither text, bytes nor mappings."""
    if isinstance(value, (str, bytes, bytearray, Mapping)):
        return False
    return isinstance(value, Iterable)


def classify(value: Any) -> Classified:
    """Tag *value* as primitive, primitive array, record array or object.

    A sequence is a record array when its first non-null element is an
    object; later elements are not inspected.  Sequences of sequences stay
    primitive arrays whose cells are nested arrays.
    """
    if is_primitive(value):
        return Classified(Shape.PRIMITIVE)

    if is_sequence(value):
        items = list(value)
        first = next((item for item in items if item is not None), None)
        if first is not None and not is_primitive(first) and not is_sequence(first):
            return Classified(Shape.RECORD_ARRAY, items, schema_of(first).readable())
        return Classified(Shape.PRIMITIVE_ARRAY, items)

    return Classified(Shape.OBJECT, None, schema_of(value).readable())
