"""Python code generator for nullable types."""

import json
import logging
from collections.abc import Mapping
from typing import Any

from jinja2 import Environment, PackageLoader

from nullify.core.reflect import SCALAR_PYTHON_TYPES
from nullify.core.types import (
    ArrayType,
    ListType,
    MapType,
    OpaqueType,
    OptionalType,
    ScalarType,
    StructField,
    StructType,
    TypeDescriptor,
)

logger = logging.getLogger(__name__)

env = Environment(
    loader=PackageLoader("nullify.generator", "templates"),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
)

template = env.get_template("python.py.j2")


class RenderError(RuntimeError):
    """Raised when descriptors cannot be rendered into one module."""


# Names the generated module looks up while its classes are created
MODULE_NAMES = frozenset(
    ["Any", "dataclass", "field", "list", "dict", "tuple"]
    + [python_type.__name__ for python_type in SCALAR_PYTHON_TYPES.values()]
)


def _annotation(t: TypeDescriptor) -> str:
    """Map a descriptor to a Python type annotation."""
    if isinstance(t, ScalarType):
        return SCALAR_PYTHON_TYPES[t.scalar].__name__
    if isinstance(t, StructType):
        return t.name
    if isinstance(t, ArrayType):
        if t.length == 0:
            return "tuple[()]"
        return f"tuple[{', '.join([_annotation(t.elem)] * t.length)}]"
    if isinstance(t, ListType):
        return f"list[{_annotation(t.elem)}]"
    if isinstance(t, MapType):
        return f"dict[{_annotation(t.key)}, {_annotation(t.value)}]"
    if isinstance(t, OptionalType):
        return f"{_annotation(t.inner)} | None"
    return "Any"


def _zero(t: TypeDescriptor) -> str:
    """Python expression for the zero value of a descriptor."""
    if isinstance(t, ScalarType):
        return f"{SCALAR_PYTHON_TYPES[t.scalar].__name__}()"
    if isinstance(t, StructType):
        return f"{t.name}()"
    if isinstance(t, ArrayType):
        if t.length == 1:
            return f"({_zero(t.elem)},)"
        return f"({', '.join([_zero(t.elem)] * t.length)})"
    if isinstance(t, ListType):
        return "[]"
    if isinstance(t, MapType):
        return "{}"
    return "None"


def _literal(value: Any) -> str:
    if isinstance(value, str):
        return json.dumps(value)
    return repr(value)


def _metadata(f: StructField) -> str:
    items = ", ".join(f"{_literal(key)}: {_literal(value)}" for key, value in f.metadata.items())
    return f"{{{items}}}"


def _default(f: StructField) -> str:
    """Default value clause for a dataclass field."""
    if isinstance(f.type, OptionalType):
        if not f.metadata:
            return " = None"
        return f" = field(default=None, metadata={_metadata(f)})"

    args = [f"default_factory=lambda: {_zero(f.type)}"]
    if f.metadata:
        args.append(f"metadata={_metadata(f)}")
    return f" = field({', '.join(args)})"


def _needs_field(structs: list[StructType]) -> bool:
    return any(
        f.metadata or not isinstance(f.type, OptionalType) for s in structs for f in s.fields
    )


def _has_opaque(t: TypeDescriptor) -> bool:
    if isinstance(t, OpaqueType):
        return True
    if isinstance(t, StructType):
        return any(_has_opaque(f.type) for f in t.fields)
    if isinstance(t, (ArrayType, ListType)):
        return _has_opaque(t.elem)
    if isinstance(t, MapType):
        return _has_opaque(t.key) or _has_opaque(t.value)
    if isinstance(t, OptionalType):
        return _has_opaque(t.inner)
    return False


def _collect_structs(t: TypeDescriptor, structs: dict[str, StructType]) -> None:
    """Collect structs reachable from a descriptor, dependencies first."""
    if isinstance(t, StructType):
        for f in t.fields:
            _collect_structs(f.type, structs)
        existing = structs.get(t.name)
        if existing is None:
            structs[t.name] = t
        elif existing != t:
            raise RenderError(f"Two different structs are named {t.name}")
    elif isinstance(t, (ArrayType, ListType)):
        _collect_structs(t.elem, structs)
    elif isinstance(t, MapType):
        _collect_structs(t.key, structs)
        _collect_structs(t.value, structs)
    elif isinstance(t, OptionalType):
        _collect_structs(t.inner, structs)


def _check_names(structs: list[StructType], aliases: list[tuple[str, TypeDescriptor]]) -> None:
    """Reject names that would shadow one the generated module depends on.

    A field called ``str`` turns every later ``str | None`` in its class
    into ``None | None``.
    """
    struct_names = {s.name for s in structs}
    for name in [*struct_names, *(name for name, _ in aliases)]:
        if name in MODULE_NAMES:
            raise RenderError(f"Name {name} shadows a name used by the generated module")

    reserved = MODULE_NAMES | struct_names
    for s in structs:
        for f in s.fields:
            if f.name in reserved:
                raise RenderError(
                    f"Field {s.name}.{f.name} shadows a name used by the generated module"
                )


def _is_struct_root(name: str, t: TypeDescriptor) -> bool:
    """Check if a root is just a (nullable) struct of the same name."""
    if isinstance(t, OptionalType):
        t = t.inner
    return isinstance(t, StructType) and t.name == name


def render(roots: Mapping[str, TypeDescriptor]) -> str:
    """Render named descriptors to Python source code.

    Every reachable struct becomes a dataclass. Roots that are not a struct
    of the same name also get a module-level type alias.
    """
    collected: dict[str, StructType] = {}
    for t in roots.values():
        _collect_structs(t, collected)
    structs = list(collected.values())

    aliases = [(name, t) for name, t in roots.items() if not _is_struct_root(name, t)]
    for name, _ in aliases:
        if name in collected:
            raise RenderError(f"Alias {name} clashes with a struct of the same name")
    _check_names(structs, aliases)

    imports: list[str] = []
    if structs:
        imports.append(
            "from dataclasses import dataclass, field"
            if _needs_field(structs)
            else "from dataclasses import dataclass"
        )
    if any(_has_opaque(t) for t in roots.values()):
        imports.append("from typing import Any")

    logger.debug("Rendering %d struct(s) and %d alias(es)", len(structs), len(aliases))

    return template.render(
        imports=imports,
        structs=structs,
        aliases=aliases,
        annotation=_annotation,
        default=_default,
    )
