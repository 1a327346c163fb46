"""Type descriptors for nullify.

These dataclasses describe the structure of a type independently of the
Python runtime, so that optional depth (``OptionalType(OptionalType(...))``)
can be expressed even though ``typing`` collapses nested ``Optional``.
"""

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum, auto
from types import MappingProxyType
from typing import Any, ClassVar, TypeAlias

__all__ = [
    "ANY",
    "BYTE",
    "DESCRIPTOR_TYPES",
    "SCALAR_ALIASES",
    "STRING",
    "ArrayType",
    "Kind",
    "ListType",
    "MapType",
    "OpaqueType",
    "OptionalType",
    "ScalarKind",
    "ScalarType",
    "StructField",
    "StructType",
    "TypeDescriptor",
    "format_struct",
    "format_type",
    "is_descriptor",
    "is_optional",
    "optional_depth",
    "optional_of",
    "scalar",
    "to_dict",
    "unwrap",
]


class Kind(StrEnum):
    """Coarse category of a type descriptor."""

    SCALAR = auto()
    STRUCT = auto()
    ARRAY = auto()
    LIST = auto()
    MAP = auto()
    OPTIONAL = auto()
    OPAQUE = auto()


class ScalarKind(StrEnum):
    """Scalar types that are wrapped without further recursion."""

    BOOL = auto()
    INT = auto()
    INT8 = auto()
    INT16 = auto()
    INT32 = auto()
    INT64 = auto()
    UINT = auto()
    UINT8 = auto()
    UINT16 = auto()
    UINT32 = auto()
    UINT64 = auto()
    FLOAT32 = auto()
    FLOAT64 = auto()
    COMPLEX64 = auto()
    COMPLEX128 = auto()
    STRING = auto()


# Aliases accepted wherever a scalar kind is named
SCALAR_ALIASES: dict[str, ScalarKind] = {
    "byte": ScalarKind.UINT8,
}

_EMPTY_METADATA: Mapping[str, Any] = MappingProxyType({})


@dataclass(frozen=True, slots=True)
class ScalarType:
    """A scalar type (boolean, number or text)."""

    kind: ClassVar[Kind] = Kind.SCALAR

    scalar: ScalarKind


@dataclass(frozen=True, slots=True)
class StructField:
    """A named struct field with its metadata (serialization tags)."""

    name: str
    type: "TypeDescriptor"
    metadata: Mapping[str, Any] = field(default_factory=lambda: _EMPTY_METADATA, hash=False)


@dataclass(frozen=True, slots=True)
class StructType:
    """A struct with ordered, named fields."""

    kind: ClassVar[Kind] = Kind.STRUCT

    name: str
    fields: tuple[StructField, ...]


@dataclass(frozen=True, slots=True)
class ArrayType:
    """A fixed-length sequence."""

    kind: ClassVar[Kind] = Kind.ARRAY

    length: int
    elem: "TypeDescriptor"


@dataclass(frozen=True, slots=True)
class ListType:
    """A variable-length sequence."""

    kind: ClassVar[Kind] = Kind.LIST

    elem: "TypeDescriptor"


@dataclass(frozen=True, slots=True)
class MapType:
    """A mapping from key type to value type."""

    kind: ClassVar[Kind] = Kind.MAP

    key: "TypeDescriptor"
    value: "TypeDescriptor"


@dataclass(frozen=True, slots=True)
class OptionalType:
    """One level of optional indirection: present or absent."""

    kind: ClassVar[Kind] = Kind.OPTIONAL

    inner: "TypeDescriptor"


@dataclass(frozen=True, slots=True)
class OpaqueType:
    """A type nullify does not look into (callables, handles, enums, ...)."""

    kind: ClassVar[Kind] = Kind.OPAQUE

    name: str


TypeDescriptor: TypeAlias = (
    ScalarType | StructType | ArrayType | ListType | MapType | OptionalType | OpaqueType
)

DESCRIPTOR_TYPES = (ScalarType, StructType, ArrayType, ListType, MapType, OptionalType, OpaqueType)

BYTE = ScalarType(ScalarKind.UINT8)
STRING = ScalarType(ScalarKind.STRING)
ANY = OpaqueType("Any")


def scalar(name: str) -> ScalarType:
    """Return the scalar descriptor for a kind name such as "int32" or "byte"."""
    if name in SCALAR_ALIASES:
        return ScalarType(SCALAR_ALIASES[name])
    return ScalarType(ScalarKind(name))


def is_descriptor(obj: object) -> bool:
    """Check if an object is a type descriptor."""
    return isinstance(obj, DESCRIPTOR_TYPES)


def optional_of(t: TypeDescriptor) -> OptionalType:
    """Wrap a descriptor in one level of optionality."""
    return OptionalType(t)


def is_optional(t: TypeDescriptor) -> bool:
    return isinstance(t, OptionalType)


def unwrap(t: TypeDescriptor) -> TypeDescriptor:
    """Strip every level of optionality."""
    while isinstance(t, OptionalType):
        t = t.inner
    return t


def optional_depth(t: TypeDescriptor) -> int:
    """Count the chained optional levels on top of a descriptor."""
    depth = 0
    while isinstance(t, OptionalType):
        depth += 1
        t = t.inner
    return depth


def format_type(t: TypeDescriptor) -> str:
    """Format a descriptor in type definition language syntax.

    Structs are written by name; use ``format_struct`` for their bodies.
    """
    if isinstance(t, ScalarType):
        return str(t.scalar)
    if isinstance(t, StructType):
        return t.name
    if isinstance(t, ArrayType):
        return f"{format_type(t.elem)}[{t.length}]"
    if isinstance(t, ListType):
        return f"{format_type(t.elem)}[]"
    if isinstance(t, MapType):
        return f"map<{format_type(t.key)}, {format_type(t.value)}>"
    if isinstance(t, OptionalType):
        return f"{format_type(t.inner)}?"
    return f"opaque<{t.name}>"


def format_struct(t: StructType) -> str:
    """Format a struct body in type definition language syntax."""
    lines = [f"struct {t.name} {{"]
    for f in t.fields:
        annotations = "".join(
            f" @{key}({json.dumps(str(value))})" for key, value in f.metadata.items()
        )
        lines.append(f"  {f.name}: {format_type(f.type)}{annotations}")
    lines.append("}")
    return "\n".join(lines)


def to_dict(t: TypeDescriptor) -> dict[str, Any]:
    """Convert a descriptor to a JSON-compatible dict."""
    data: dict[str, Any] = {"kind": t.kind.value}
    if isinstance(t, ScalarType):
        data["scalar"] = t.scalar.value
    elif isinstance(t, StructType):
        data["name"] = t.name
        data["fields"] = [
            {
                "name": f.name,
                "type": to_dict(f.type),
                "metadata": {key: str(value) for key, value in f.metadata.items()},
            }
            for f in t.fields
        ]
    elif isinstance(t, ArrayType):
        data["length"] = t.length
        data["elem"] = to_dict(t.elem)
    elif isinstance(t, ListType):
        data["elem"] = to_dict(t.elem)
    elif isinstance(t, MapType):
        data["key"] = to_dict(t.key)
        data["value"] = to_dict(t.value)
    elif isinstance(t, OptionalType):
        data["inner"] = to_dict(t.inner)
    else:
        data["name"] = t.name
    return data
