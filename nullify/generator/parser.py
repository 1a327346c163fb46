"""Type definition parser using Lark."""

import json
import keyword
import logging
import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from lark import Lark, Token, Tree
from lark.exceptions import UnexpectedInput, VisitError
from lark.visitors import Transformer

from nullify.core.types import (
    SCALAR_ALIASES,
    ArrayType,
    ListType,
    MapType,
    OpaqueType,
    OptionalType,
    ScalarKind,
    StructField,
    StructType,
    TypeDescriptor,
    scalar,
)

logger = logging.getLogger(__name__)

_g_parser: Lark | None = None

SCALAR_NAMES = frozenset([*(kind.value for kind in ScalarKind), *SCALAR_ALIASES])
KEYWORDS = frozenset(["map", "opaque", "struct"])


class TypeSyntaxError(RuntimeError):
    """Raised when a type definition cannot be parsed or resolved."""


@dataclass
class _Annotation:
    name: str
    value: str


def _get_parser() -> Lark:
    global _g_parser

    if not _g_parser:
        with open(f"{os.path.dirname(__file__)}/typedef.lark", encoding="utf-8") as f:
            grammar = f.read()
        _g_parser = Lark(grammar, start=["start", "type_expr"])

    return _g_parser


def _check_name(name: str, what: str) -> None:
    if keyword.iskeyword(name):
        raise TypeSyntaxError(f"{what} name {name} is a Python keyword")


class TreeTransformer(Transformer):
    """Transform a type subtree into descriptors.

    Struct references are looked up through ``resolve``.
    """

    def __init__(self, resolve: Callable[[str], TypeDescriptor]) -> None:
        super().__init__()
        self._resolve = resolve

    def type_expr(self, args: list[Any]) -> TypeDescriptor:
        return args[0]

    def named(self, args: list[Any]) -> TypeDescriptor:
        name = str(args[0])
        if name in SCALAR_NAMES:
            return scalar(name)
        return self._resolve(name)

    def optional(self, args: list[Any]) -> OptionalType:
        return OptionalType(args[0])

    def sequence(self, args: list[Any]) -> ListType:
        return ListType(args[0])

    def array(self, args: list[Any]) -> ArrayType:
        return ArrayType(length=int(args[1]), elem=args[0])

    def mapping(self, args: list[Any]) -> MapType:
        return MapType(key=args[0], value=args[1])

    def opaque(self, args: list[Any]) -> OpaqueType:
        return OpaqueType(str(args[0]))

    def annotation(self, args: list[Any]) -> _Annotation:
        return _Annotation(name=str(args[0]), value=json.loads(args[1]))

    def member(self, args: list[Any]) -> StructField:
        name = str(args[0])
        _check_name(name, "Field")

        metadata: dict[str, str] = {}
        for annotation in args[2:]:
            if annotation.name in metadata:
                raise TypeSyntaxError(f"Field {name} has more than one @{annotation.name}")
            metadata[annotation.name] = annotation.value

        return StructField(name=name, type=args[1], metadata=MappingProxyType(metadata))


def _transform(transformer: TreeTransformer, tree: Tree) -> Any:
    try:
        return transformer.transform(tree)
    except VisitError as e:
        if isinstance(e.orig_exc, TypeSyntaxError):
            raise e.orig_exc from None
        raise


class _StructResolver:
    """Resolve struct declarations on demand so references may point forward."""

    def __init__(self, declarations: Mapping[str, Tree]) -> None:
        self._declarations = declarations
        self._resolved: dict[str, StructType] = {}
        self._in_progress: list[str] = []

    def resolve(self, name: str) -> StructType:
        if name in self._resolved:
            return self._resolved[name]
        if name not in self._declarations:
            raise TypeSyntaxError(f"Unknown type {name}")
        if name in self._in_progress:
            path = " -> ".join([*self._in_progress, name])
            raise TypeSyntaxError(f"Struct {name} refers back to itself ({path})")

        self._in_progress.append(name)
        try:
            transformer = TreeTransformer(self.resolve)
            members = self._declarations[name].children[1:]
            fields = [_transform(transformer, member) for member in members]
        finally:
            self._in_progress.pop()

        seen: set[str] = set()
        for f in fields:
            if f.name in seen:
                raise TypeSyntaxError(f"Struct {name} declares {f.name} more than once")
            seen.add(f.name)

        struct = StructType(name=name, fields=tuple(fields))
        self._resolved[name] = struct
        return struct


def _parse_tree(text: str, start: str) -> Tree:
    try:
        return _get_parser().parse(text, start=start)
    except UnexpectedInput as e:
        raise TypeSyntaxError(f"Invalid syntax at line {e.line}, column {e.column}") from e


def parse(text: str) -> dict[str, StructType]:
    """Parse a type definition file.

    Returns:
        The declared structs by name, in declaration order.
    """
    tree = _parse_tree(text, "start")

    declarations: dict[str, Tree] = {}
    for struct_tree in tree.children:
        name_token: Token = struct_tree.children[0]
        name = str(name_token)
        if name in SCALAR_NAMES or name in KEYWORDS:
            raise TypeSyntaxError(f"Struct name {name} is reserved")
        _check_name(name, "Struct")
        if name in declarations:
            raise TypeSyntaxError(f"Struct {name} declared more than once")
        declarations[name] = struct_tree

    resolver = _StructResolver(declarations)
    structs = {name: resolver.resolve(name) for name in declarations}
    logger.debug("Parsed %d struct(s): %s", len(structs), ", ".join(structs))
    return structs


def parse_type(expr: str, structs: Mapping[str, StructType] | None = None) -> TypeDescriptor:
    """Parse a single type expression such as ``map<string, int32[]>?``.

    Struct names are looked up in ``structs``.
    """
    known = structs or {}

    def resolve(name: str) -> StructType:
        if name not in known:
            raise TypeSyntaxError(f"Unknown type {name}")
        return known[name]

    tree = _parse_tree(expr, "type_expr")
    return _transform(TreeTransformer(resolve), tree)
