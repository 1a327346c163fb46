"""Bridge between live Python types and type descriptors.

``describe`` derives a descriptor from an annotation (dataclasses, builtins
and ``typing`` generics), ``type_of`` does the same for an arbitrary object,
and ``to_python`` / ``zero_value`` turn a descriptor back into a Python
annotation or a zero-valued instance.
"""

import collections
import dataclasses
import enum
import types
from collections import abc
from collections.abc import Iterable
from functools import partial
from typing import Annotated, Any, Optional, Union, get_args, get_origin, get_type_hints

from .types import (
    ANY,
    BYTE,
    ArrayType,
    ListType,
    MapType,
    OpaqueType,
    OptionalType,
    ScalarKind,
    ScalarType,
    StructField,
    StructType,
    TypeDescriptor,
    is_descriptor,
)


class DescriptionError(RuntimeError):
    """Raised when a Python type cannot be expressed as a descriptor."""


# Checked in order: bool is an int subclass
_PYTHON_SCALARS: tuple[tuple[type, ScalarKind], ...] = (
    (bool, ScalarKind.BOOL),
    (int, ScalarKind.INT),
    (float, ScalarKind.FLOAT64),
    (complex, ScalarKind.COMPLEX128),
    (str, ScalarKind.STRING),
)

_BYTE_TYPES = (bytes, bytearray, memoryview)

_SEQUENCE_ORIGINS = frozenset(
    [
        list,
        set,
        frozenset,
        collections.deque,
        abc.Sequence,
        abc.MutableSequence,
        abc.Set,
        abc.MutableSet,
        abc.Collection,
        abc.Iterable,
    ]
)

_MAPPING_ORIGINS = frozenset(
    [
        dict,
        collections.OrderedDict,
        collections.defaultdict,
        abc.Mapping,
        abc.MutableMapping,
    ]
)

# Python type used for each scalar kind when materializing
SCALAR_PYTHON_TYPES: dict[ScalarKind, type] = {
    ScalarKind.BOOL: bool,
    ScalarKind.INT: int,
    ScalarKind.INT8: int,
    ScalarKind.INT16: int,
    ScalarKind.INT32: int,
    ScalarKind.INT64: int,
    ScalarKind.UINT: int,
    ScalarKind.UINT8: int,
    ScalarKind.UINT16: int,
    ScalarKind.UINT32: int,
    ScalarKind.UINT64: int,
    ScalarKind.FLOAT32: float,
    ScalarKind.FLOAT64: float,
    ScalarKind.COMPLEX64: complex,
    ScalarKind.COMPLEX128: complex,
    ScalarKind.STRING: str,
}


def _type_name(tp: Any) -> str:
    if isinstance(tp, type):
        return tp.__name__
    return repr(tp).removeprefix("typing.")


def _is_annotation(obj: Any) -> bool:
    return isinstance(obj, type) or get_origin(obj) is not None or obj is Any


class _Describer:
    """Describe one annotation graph, rejecting dataclasses that recurse."""

    def __init__(self) -> None:
        self._in_progress: list[type] = []

    def describe(self, tp: Any) -> TypeDescriptor:
        origin = get_origin(tp)

        if origin is Annotated:
            base, *extras = get_args(tp)
            for extra in extras:
                if isinstance(extra, ScalarKind):
                    return ScalarType(extra)
            return self.describe(base)

        if origin is Union or origin is types.UnionType:
            return self._describe_union(tp)

        if origin is not None:
            return self._describe_generic(tp, origin, get_args(tp))

        if tp is Any:
            return ANY

        if not isinstance(tp, type):
            return OpaqueType(_type_name(tp))

        if issubclass(tp, enum.Enum):
            return OpaqueType(tp.__name__)
        for python_type, kind in _PYTHON_SCALARS:
            if issubclass(tp, python_type):
                return ScalarType(kind)
        if issubclass(tp, _BYTE_TYPES):
            return ListType(BYTE)
        if dataclasses.is_dataclass(tp):
            return self._describe_struct(tp)
        if tp is tuple:
            return ListType(ANY)
        if tp in _SEQUENCE_ORIGINS:
            return ListType(ANY)
        if tp in _MAPPING_ORIGINS:
            return MapType(ANY, ANY)
        return OpaqueType(tp.__name__)

    def _describe_union(self, tp: Any) -> TypeDescriptor:
        args = get_args(tp)
        members = [arg for arg in args if arg is not type(None)]
        if len(members) == len(args):
            return OpaqueType(_type_name(tp))
        if len(members) == 1:
            return OptionalType(self.describe(members[0]))
        return OptionalType(OpaqueType(" | ".join(_type_name(m) for m in members)))

    def _describe_generic(self, tp: Any, origin: Any, args: tuple[Any, ...]) -> TypeDescriptor:
        if origin is tuple:
            if len(args) == 2 and args[1] is Ellipsis:
                return ListType(self.describe(args[0]))
            if not args:
                return ArrayType(0, ANY)
            elems = [self.describe(arg) for arg in args]
            if all(elem == elems[0] for elem in elems):
                return ArrayType(len(elems), elems[0])
            return OpaqueType(_type_name(tp))

        if origin in _SEQUENCE_ORIGINS:
            return ListType(self.describe(args[0]) if args else ANY)

        if origin in _MAPPING_ORIGINS:
            if not args:
                return MapType(ANY, ANY)
            return MapType(self.describe(args[0]), self.describe(args[1]))

        return OpaqueType(_type_name(tp))

    def _describe_struct(self, cls: type) -> StructType:
        if cls in self._in_progress:
            path = " -> ".join(c.__name__ for c in [*self._in_progress, cls])
            raise DescriptionError(f"Dataclass {cls.__name__} refers back to itself ({path})")

        self._in_progress.append(cls)
        try:
            try:
                hints = get_type_hints(cls, include_extras=True)
            except NameError as e:
                raise DescriptionError(f"Cannot resolve annotations of {cls.__name__}: {e}") from e

            fields = tuple(
                StructField(
                    name=f.name,
                    type=self.describe(hints.get(f.name, f.type)),
                    metadata=f.metadata,
                )
                for f in dataclasses.fields(cls)
            )
        finally:
            self._in_progress.pop()

        return StructType(name=cls.__name__, fields=fields)

    def describe_value(self, value: Any) -> TypeDescriptor:
        if isinstance(value, _BYTE_TYPES):
            return ListType(BYTE)
        if isinstance(value, (list, set, frozenset, collections.deque)):
            return ListType(self._common(value))
        if isinstance(value, tuple):
            return ArrayType(len(value), self._common(value))
        if isinstance(value, dict):
            return MapType(self._common(value.keys()), self._common(value.values()))
        return self.describe(type(value))

    def _common(self, values: Iterable[Any]) -> TypeDescriptor:
        """Infer the element type shared by a container's contents."""
        values = list(values)
        present = {self.describe_value(v) for v in values if v is not None}
        if len(present) != 1:
            return ANY
        (elem,) = present
        if len(values) > sum(1 for v in values if v is not None):
            return OptionalType(elem)
        return elem


def describe(annotation: Any) -> TypeDescriptor:
    """Derive a descriptor from a Python type annotation.

    Raises:
        DescriptionError: A dataclass refers back to itself or has
            annotations that cannot be resolved.
    """
    return _Describer().describe(annotation)


def describe_value(value: Any) -> TypeDescriptor:
    """Derive a descriptor from a value, inferring container element types."""
    return _Describer().describe_value(value)


def type_of(obj: Any) -> TypeDescriptor | None:
    """Resolve a value, a Python type or a descriptor to a descriptor.

    Returns None for None, which carries no type.
    """
    if obj is None:
        return None
    if is_descriptor(obj):
        return obj
    if _is_annotation(obj):
        return describe(obj)
    return describe_value(obj)


class _Materializer:
    """Build Python types for one descriptor graph.

    Structurally equal structs share a class within one materialization.
    """

    def __init__(self) -> None:
        self._classes: dict[StructType, type] = {}

    def annotation(self, t: TypeDescriptor) -> Any:
        if isinstance(t, ScalarType):
            return SCALAR_PYTHON_TYPES[t.scalar]
        if isinstance(t, StructType):
            return self.struct_class(t)
        if isinstance(t, ArrayType):
            if t.length == 0:
                return tuple[()]
            return tuple[(self.annotation(t.elem),) * t.length]
        if isinstance(t, ListType):
            return list[self.annotation(t.elem)]  # type: ignore[misc]
        if isinstance(t, MapType):
            return dict[self.annotation(t.key), self.annotation(t.value)]  # type: ignore[misc]
        if isinstance(t, OptionalType):
            return Optional[self.annotation(t.inner)]
        return Any

    def struct_class(self, t: StructType) -> type:
        cls = self._classes.get(t)
        if cls is None:
            specs = [(f.name, self.annotation(f.type), self._field(f)) for f in t.fields]
            cls = dataclasses.make_dataclass(t.name, specs)
            self._classes[t] = cls
        return cls

    def _field(self, f: StructField) -> Any:
        if isinstance(f.type, OptionalType):
            return dataclasses.field(default=None, metadata=f.metadata)
        return dataclasses.field(default_factory=partial(self.zero, f.type), metadata=f.metadata)

    def zero(self, t: TypeDescriptor) -> Any:
        if isinstance(t, ScalarType):
            return SCALAR_PYTHON_TYPES[t.scalar]()
        if isinstance(t, StructType):
            return self.struct_class(t)()
        if isinstance(t, ArrayType):
            return tuple(self.zero(t.elem) for _ in range(t.length))
        if isinstance(t, ListType):
            return []
        if isinstance(t, MapType):
            return {}
        return None


def to_python(t: TypeDescriptor) -> Any:
    """Materialize a descriptor as a Python annotation.

    Structs become freshly created dataclasses; nothing is cached between
    calls.
    """
    return _Materializer().annotation(t)


def zero_value(t: TypeDescriptor) -> Any:
    """Allocate the zero value of a descriptor.

    Optional and opaque types are None, lists and maps are empty, arrays
    hold the zero of their element and structs are default-constructed.
    """
    return _Materializer().zero(t)
