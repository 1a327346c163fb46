"""Recursive transformation of type descriptors into their nullable form."""

import logging
from dataclasses import replace
from typing import Any

from .policy import DEFAULT_POLICY, Option, Policy, build_policy
from .reflect import to_python, type_of, zero_value
from .types import (
    STRING,
    ArrayType,
    ListType,
    MapType,
    OptionalType,
    ScalarKind,
    ScalarType,
    StructType,
    TypeDescriptor,
    unwrap,
)

logger = logging.getLogger(__name__)


def nullify(obj: Any, *options: Option) -> Any:
    """Return a zero value of the nullable version of ``obj``'s type.

    ``obj`` may be a value, a Python type or a descriptor. A string becomes
    ``str | None`` and a dataclass becomes a new dataclass whose fields are
    all nullable, e.g.

        @dataclass
        class Person:
            name: str

    is turned into the equivalent of

        @dataclass
        class Person:
            name: str | None = None

    and ``nullify(Person())`` returns an instance of that new class. Decoding
    a payload into it and checking for ``None`` tells a missing field from
    one set to its zero value.

    Passing ``None`` returns ``None``.
    """
    t = type_of(obj)
    if t is None:
        return None

    policy = build_policy(options)
    nullable = transform(t, policy)
    logger.debug("nullified %s with %s", t.kind, policy)

    # Every production is optional; the caller gets the value it refers to
    return zero_value(_strip(nullable))


def nullified_type(obj: Any, *options: Option) -> Any:
    """Return the nullable version of ``obj``'s type as a Python annotation.

    Returns ``None`` if ``obj`` is ``None``.
    """
    t = type_of(obj)
    if t is None:
        return None
    return to_python(transform(t, build_policy(options)))


def transform(t: TypeDescriptor, policy: Policy = DEFAULT_POLICY) -> TypeDescriptor:
    """Recursively transform a descriptor into its nullable counterpart.

    The result is always exactly one level of ``OptionalType`` over the
    transformed type.
    """
    if isinstance(t, StructType):
        fields = tuple(replace(f, type=transform(f.type, policy)) for f in t.fields)
        return OptionalType(StructType(name=t.name, fields=fields))

    if isinstance(t, ArrayType):
        if policy.bytes_as_text and _is_byte(t.elem):
            return OptionalType(STRING)
        elem = _wrap(transform(t.elem, policy), policy.wrap_array_elements)
        return OptionalType(ArrayType(length=t.length, elem=elem))

    if isinstance(t, ListType):
        if policy.bytes_as_text and _is_byte(t.elem):
            return OptionalType(STRING)
        elem = _wrap(transform(t.elem, policy), policy.wrap_list_elements)
        return OptionalType(ListType(elem=elem))

    if isinstance(t, MapType):
        key = _wrap(transform(t.key, policy), policy.wrap_map_keys)
        value = _wrap(transform(t.value, policy), policy.wrap_map_values)
        return OptionalType(MapType(key=key, value=value))

    if isinstance(t, ScalarType):
        return OptionalType(t)

    if isinstance(t, OptionalType):
        return transform(unwrap(t), policy)

    return OptionalType(t)


def _is_byte(t: TypeDescriptor) -> bool:
    t = unwrap(t)
    return isinstance(t, ScalarType) and t.scalar == ScalarKind.UINT8


def _strip(t: TypeDescriptor) -> TypeDescriptor:
    """Remove exactly one level of optionality, if present."""
    if isinstance(t, OptionalType):
        return t.inner
    return t


def _wrap(t: TypeDescriptor, wrap: bool) -> TypeDescriptor:
    """Leave exactly one optional level when wrapping, none otherwise."""
    if wrap:
        return t if isinstance(t, OptionalType) else OptionalType(t)
    return _strip(t)
