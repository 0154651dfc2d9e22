"""Field-descriptor tables used to read values on encode and write them back on decode.

A ``Schema`` is an explicit, ordered list of ``FieldDescriptor`` entries plus a
builder capability (``new()`` / ``build()``).  Schemas are either registered
by hand with ``register_schema()`` or derived once per type from dataclass
fields, class annotations and properties.  Dicts are handled as open records
whose field list comes from their keys.
"""

import dataclasses
import enum
import functools
import types
import typing
import uuid
from collections.abc import Collection, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Callable


class Kind(enum.Enum):
    """Declared value kind of a field or decode target."""

    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    DECIMAL = "decimal"
    TEXT = "text"
    DATETIME = "datetime"
    DATE = "date"
    TIME = "time"
    UUID = "uuid"
    ENUM = "enum"
    OBJECT = "object"
    SEQUENCE = "sequence"
    ANY = "any"


# Order matters: enums before ints (IntEnum), bools before ints, datetimes before dates.
_SCALAR_TYPES: tuple[tuple[type, Kind], ...] = (
    (enum.Enum, Kind.ENUM),
    (bool, Kind.BOOL),
    (int, Kind.INT),
    (float, Kind.FLOAT),
    (Decimal, Kind.DECIMAL),
    (str, Kind.TEXT),
    (datetime, Kind.DATETIME),
    (date, Kind.DATE),
    (time, Kind.TIME),
    (uuid.UUID, Kind.UUID),
)

SCALAR_KINDS = frozenset(kind for _, kind in _SCALAR_TYPES)

_ZERO_VALUES: dict[Kind, Any] = {
    Kind.BOOL: False,
    Kind.INT: 0,
    Kind.FLOAT: 0.0,
    Kind.DECIMAL: Decimal(0),
    Kind.TEXT: "",
    Kind.DATETIME: datetime.min,
    Kind.DATE: date.min,
    Kind.TIME: time(),
    Kind.UUID: uuid.UUID(int=0),
}

_SEQUENCE_ORIGINS = (list, tuple, set, frozenset, Sequence, Iterable, Collection)


def scalar_kind(value: Any) -> Kind | None:
    """Return the scalar kind of *value*, or None for compound values and None."""
    for typ, kind in _SCALAR_TYPES:
        if isinstance(value, typ):
            return kind
    return None


def scalar_kind_of_type(tp: type) -> Kind | None:
    for typ, kind in _SCALAR_TYPES:
        if issubclass(tp, typ):
            return kind
    return None


# ── descriptors ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class TypeSpec:
    """Resolved description of a decode target.

    Attributes:
        kind: Declared value kind.
        nullable: Empty input maps to None instead of the kind's zero value.
        enum_type: Enum class for ``Kind.ENUM``.
        element: Element spec for ``Kind.SEQUENCE``.
        container: Concrete collection type built for ``Kind.SEQUENCE``.
        target: For ``Kind.OBJECT``: a class, an explicit ``Schema``, or None
            for an untyped record (dict).
    """

    kind: Kind
    nullable: bool = False
    enum_type: type | None = None
    element: "TypeSpec | None" = None
    container: type = list
    target: Any = None

    def schema(self) -> "Schema":
        if isinstance(self.target, Schema):
            return self.target
        if self.target is None:
            return RECORD_SCHEMA
        return schema_for(self.target)

    def zero(self) -> Any:
        """Value used when the source text is empty."""
        if self.nullable:
            return None
        if self.kind is Kind.ENUM:
            return next(iter(self.enum_type))
        return _ZERO_VALUES.get(self.kind)

    def describe(self) -> str:
        if self.kind is Kind.OBJECT:
            if isinstance(self.target, Schema):
                return self.target.name
            return getattr(self.target, "__name__", "dict")
        if self.kind is Kind.SEQUENCE:
            inner = self.element.describe() if self.element else "any"
            return f"{self.container.__name__}[{inner}]"
        if self.kind is Kind.ENUM:
            return self.enum_type.__name__
        return self.kind.value


ANY_SPEC = TypeSpec(Kind.ANY, nullable=True)
ANY_SEQUENCE_SPEC = TypeSpec(Kind.SEQUENCE, element=ANY_SPEC)
RECORD_SPEC = TypeSpec(Kind.OBJECT)


@dataclass(frozen=True)
class FieldDescriptor:
    """One named field: its type plus read and write accessors.

    A field without ``get`` is never encoded; a field without ``set`` is
    skipped on decode.  ``set`` writes into the builder returned by
    ``Schema.new()``, not into the finished instance.
    """

    name: str
    spec: TypeSpec
    get: Callable[[Any], Any] | None = None
    set: Callable[[Any, Any], None] | None = None

    @property
    def kind(self) -> Kind:
        return self.spec.kind


def _identity(builder: Any) -> Any:
    return builder


@dataclass(frozen=True)
class Schema:
    """Ordered field table for a target shape.

    Attributes:
        name: Display name (usually the class name).
        fields: Field descriptors in encoding order.
        new: Returns a fresh, mutable builder.
        build: Turns a filled builder into the final instance.
        open: Accept any field name on decode (untyped records).
    """

    name: str
    fields: tuple[FieldDescriptor, ...]
    new: Callable[[], Any] = dict
    build: Callable[[Any], Any] = _identity
    open: bool = False
    _exact: dict = field(init=False, repr=False, compare=False)
    _folded: dict = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        exact: dict[str, FieldDescriptor] = {}
        folded: dict[str, FieldDescriptor] = {}
        for fd in self.fields:
            if fd.name in exact:
                raise ValueError(f"{self.name}: duplicate field name {fd.name!r}")
            exact[fd.name] = fd
            folded.setdefault(fd.name.casefold(), fd)
        object.__setattr__(self, "_exact", exact)
        object.__setattr__(self, "_folded", folded)

    def readable(self) -> tuple[FieldDescriptor, ...]:
        return tuple(fd for fd in self.fields if fd.get is not None)

    def lookup(self, name: str, case_insensitive: bool = True) -> FieldDescriptor | None:
        """Find the field matching *name*, honouring the case rule."""
        fd = self._exact.get(name)
        if fd is None and case_insensitive:
            fd = self._folded.get(name.casefold())
        if fd is None and self.open:
            fd = FieldDescriptor(name, ANY_SPEC, get=_key_reader(name), set=_key_writer(name))
        return fd


RECORD_SCHEMA = Schema("dict", (), open=True)


# ── accessors ───────────────────────────────────────────────────────────────

def _attr_reader(name: str) -> Callable[[Any], Any]:
    def read(obj: Any) -> Any:
        return getattr(obj, name, None)
    return read


def _attr_writer(name: str) -> Callable[[Any, Any], None]:
    def write(obj: Any, value: Any) -> None:
        setattr(obj, name, value)
    return write


def _key_reader(key: Any) -> Callable[[Any], Any]:
    def read(obj: Any) -> Any:
        if isinstance(obj, Mapping):
            return obj.get(key)
        return None
    return read


def _key_writer(key: Any) -> Callable[[Any, Any], None]:
    def write(builder: dict, value: Any) -> None:
        builder[key] = value
    return write


# ── type hints → TypeSpec ───────────────────────────────────────────────────

def spec_for(tp: Any) -> TypeSpec:
    """Resolve a Python type, ``Schema`` or ``TypeSpec`` to a ``TypeSpec``.

    Raises:
        TypeError: *tp* is not something values can be decoded into.
    """
    if isinstance(tp, TypeSpec):
        return tp
    if isinstance(tp, Schema):
        return TypeSpec(Kind.OBJECT, target=tp)
    if tp is Any or tp is None or tp is object or isinstance(tp, (str, typing.ForwardRef)):
        # unresolved forward references decode as untyped values
        return ANY_SPEC

    origin = typing.get_origin(tp)
    if origin is typing.Union or origin is types.UnionType:
        args = typing.get_args(tp)
        concrete = [a for a in args if a is not type(None)]
        inner = spec_for(concrete[0]) if len(concrete) == 1 else ANY_SPEC
        if len(concrete) != len(args):
            return dataclasses.replace(inner, nullable=True)
        return inner
    if origin is typing.Annotated:
        return spec_for(typing.get_args(tp)[0])
    if origin is not None:
        args = typing.get_args(tp)
        if origin in _SEQUENCE_ORIGINS:
            container = origin if origin in (list, tuple, set, frozenset) else list
            element = spec_for(args[0]) if args else ANY_SPEC
            return TypeSpec(Kind.SEQUENCE, element=element, container=container)
        if isinstance(origin, type) and issubclass(origin, Mapping):
            return RECORD_SPEC
        tp = origin

    if not isinstance(tp, type):
        raise TypeError(f"Unsupported TOON target type: {tp!r}")

    kind = scalar_kind_of_type(tp)
    if kind is Kind.ENUM:
        return TypeSpec(Kind.ENUM, enum_type=tp)
    if kind is not None:
        return TypeSpec(kind)
    if issubclass(tp, Mapping):
        return RECORD_SPEC
    if tp in (list, tuple, set, frozenset):
        return TypeSpec(Kind.SEQUENCE, element=ANY_SPEC, container=tp)
    return TypeSpec(Kind.OBJECT, target=tp)


def _type_hints(obj: Any) -> dict[str, Any]:
    try:
        return typing.get_type_hints(obj)
    except NameError:
        # forward reference that cannot be resolved; fall back to raw annotations
        return dict(getattr(obj, "__annotations__", {}))


# ── schema derivation ───────────────────────────────────────────────────────

_REGISTRY: dict[type, Schema] = {}


def register_schema(cls: type, schema: Schema) -> None:
    """Use *schema* for every instance of *cls* instead of deriving one."""
    _REGISTRY[cls] = schema


def unregister_schema(cls: type) -> None:
    _REGISTRY.pop(cls, None)


def schema_for(cls: type) -> Schema:
    """Return the schema for *cls*: registered first, derived (and cached) otherwise."""
    registered = _REGISTRY.get(cls)
    if registered is not None:
        return registered
    return _derive_schema(cls)


@functools.lru_cache(maxsize=None)
def _derive_schema(cls: type) -> Schema:
    if dataclasses.is_dataclass(cls):
        return _dataclass_schema(cls)
    return _class_schema(cls)


def _dataclass_schema(cls: type) -> Schema:
    hints = _type_hints(cls)
    dc_fields = sorted(dataclasses.fields(cls), key=lambda f: f.name)
    descriptors = tuple(
        FieldDescriptor(
            f.name,
            spec_for(hints.get(f.name, Any)),
            get=_attr_reader(f.name),
            set=_key_writer(f.name) if f.init else None,
        )
        for f in dc_fields
    )
    # init fields with no default must still be passed to the constructor
    required = {
        fd.name: fd.spec
        for fd, f in zip(descriptors, dc_fields)
        if f.init
        and f.default is dataclasses.MISSING
        and f.default_factory is dataclasses.MISSING
    }

    def build(values: dict) -> Any:
        for name, spec in required.items():
            if name not in values:
                values[name] = spec.zero()
        return cls(**values)

    return Schema(cls.__name__, descriptors, new=dict, build=build)


def _class_properties(cls: type) -> dict[str, property]:
    props: dict[str, property] = {}
    for klass in reversed(cls.__mro__):
        for name, member in vars(klass).items():
            if isinstance(member, property) and not name.startswith("_"):
                props[name] = member
    return props


def _class_schema(cls: type) -> Schema:
    """Derive a schema from public annotations and properties of a plain class.

    Decoding requires *cls* to be constructible without arguments.
    """
    hints = {
        name: hint
        for name, hint in _type_hints(cls).items()
        if not name.startswith("_") and typing.get_origin(hint) is not typing.ClassVar
    }
    props = _class_properties(cls)

    descriptors: dict[str, FieldDescriptor] = {}
    for name, hint in hints.items():
        if name in props:
            continue
        descriptors[name] = FieldDescriptor(
            name, spec_for(hint), get=_attr_reader(name), set=_attr_writer(name)
        )
    for name, prop in props.items():
        hint = _type_hints(prop.fget).get("return", Any) if prop.fget else Any
        descriptors[name] = FieldDescriptor(
            name,
            spec_for(hint),
            get=_attr_reader(name) if prop.fget else None,
            set=_attr_writer(name) if prop.fset else None,
        )

    ordered = tuple(descriptors[name] for name in sorted(descriptors))
    return Schema(cls.__name__, ordered, new=cls, build=_identity)


def record_schema(record: Mapping) -> Schema:
    """Open schema whose fields are *record*'s keys in insertion order."""
    descriptors = tuple(
        FieldDescriptor(str(key), ANY_SPEC, get=_key_reader(key), set=_key_writer(str(key)))
        for key in record
    )
    return Schema("dict", descriptors, open=True)


def schema_of(value: Any) -> Schema:
    """Schema used to read *value* while encoding.

    Plain objects also expose public instance attributes that only exist in
    ``vars(value)``; those are merged in and the result re-sorted by name.
    """
    if isinstance(value, Mapping):
        return record_schema(value)
    cls = type(value)
    if cls in _REGISTRY or dataclasses.is_dataclass(cls):
        return schema_for(cls)

    base = schema_for(cls)
    extra = [
        name for name in getattr(value, "__dict__", {})
        if not name.startswith("_") and base.lookup(name, case_insensitive=False) is None
    ]
    if not extra:
        return base
    merged = list(base.fields) + [
        FieldDescriptor(name, ANY_SPEC, get=_attr_reader(name), set=_attr_writer(name))
        for name in extra
    ]
    merged.sort(key=lambda fd: fd.name)
    return Schema(base.name, tuple(merged), new=base.new, build=base.build)
