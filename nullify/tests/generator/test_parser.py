"""Tests for the type definition parser."""

# pylint: disable=redefined-outer-name,unused-variable,expression-not-assigned,singleton-comparison

import pytest

from nullify.core.types import (
    BYTE,
    STRING,
    ArrayType,
    ListType,
    MapType,
    OpaqueType,
    OptionalType,
    ScalarKind,
    ScalarType,
    StructField,
    StructType,
    format_struct,
    format_type,
)
from nullify.generator import TypeSyntaxError, parse, parse_type

INT32 = ScalarType(ScalarKind.INT32)


def describe_parse():
    def parses_simple_struct(expect):
        structs = parse(
            """
            struct Person {
                name: string @json("name") @validate("required")
                age: uint8
            }
        """
        )

        expect(list(structs)) == ["Person"]
        person = structs["Person"]
        expect(person.name) == "Person"
        expect([f.name for f in person.fields]) == ["name", "age"]
        expect(person.fields[0].type) == STRING
        expect(dict(person.fields[0].metadata)) == {"json": "name", "validate": "required"}
        expect(person.fields[1].type) == ScalarType(ScalarKind.UINT8)
        expect(dict(person.fields[1].metadata)) == {}

    def parses_comments_and_empty_structs(expect):
        structs = parse(
            """
            # Nothing to see here
            struct Empty {}   # trailing comment
        """
        )
        expect(structs["Empty"]) == StructType(name="Empty", fields=())

    def resolves_forward_references(expect):
        structs = parse(
            """
            struct Order {
                customer: Customer
                lines: Line[]
            }

            struct Customer { name: string }
            struct Line { sku: string  qty: int32 }
        """
        )

        order = structs["Order"]
        expect(order.fields[0].type is structs["Customer"]) == True
        expect(order.fields[1].type) == ListType(structs["Line"])
        expect(list(structs)) == ["Order", "Customer", "Line"]

    def unescapes_tag_values(expect):
        structs = parse(r'struct A { x: string @json("a\"b") @note("tab\there") }')
        expect(dict(structs["A"].fields[0].metadata)) == {"json": 'a"b', "note": "tab\there"}

    def accepts_fields_named_like_keywords_or_scalars(expect):
        structs = parse("struct Weird { map: int32  string: string  opaque: bool }")
        expect([f.name for f in structs["Weird"].fields]) == ["map", "string", "opaque"]
        expect(structs["Weird"].fields[0].type) == INT32

    def builds_struct_fields(expect):
        structs = parse("struct A { x: int }")
        expect(structs["A"].fields) == (StructField(name="x", type=ScalarType(ScalarKind.INT)),)

    @pytest.mark.parametrize(
        "text, message",
        [
            ("struct A { b: B }", "Unknown type B"),
            (
                "struct A { b: B }\nstruct B { a: A }",
                "Struct A refers back to itself (A -> B -> A)",
            ),
            ("struct A { a: A[] }", "Struct A refers back to itself"),
            ("struct A {}\nstruct A {}", "Struct A declared more than once"),
            ("struct A { x: int\n x: string }", "Struct A declares x more than once"),
            ("struct int { x: int }", "Struct name int is reserved"),
            ("struct A { class: int }", "Field name class is a Python keyword"),
            ('struct A { x: int @json("a") @json("b") }', "Field x has more than one @json"),
            ("struct A { x: }", "Invalid syntax"),
            ("struct {", "Invalid syntax"),
        ],
    )
    def rejects_invalid_definitions(expect, text, message):
        with pytest.raises(TypeSyntaxError) as excinfo:
            parse(text)

        expect(message in str(excinfo.value)) == True


def describe_parse_type():
    @pytest.mark.parametrize(
        "expr, expected",
        [
            ("int32", INT32),
            ("byte", BYTE),
            ("string?", OptionalType(STRING)),
            ("string??", OptionalType(OptionalType(STRING))),
            ("(string?)?", OptionalType(OptionalType(STRING))),
            ("string[]", ListType(STRING)),
            ("string?[]", ListType(OptionalType(STRING))),
            ("string[]?", OptionalType(ListType(STRING))),
            ("byte[16]", ArrayType(16, BYTE)),
            ("int32[2][]", ListType(ArrayType(2, INT32))),
            ("map<string, int32>", MapType(STRING, INT32)),
            (
                "map<string, map<int32, byte[]>>?",
                OptionalType(MapType(STRING, MapType(INT32, ListType(BYTE)))),
            ),
            ("opaque<Channel>", OpaqueType("Channel")),
            ("opaque<Handle>?", OptionalType(OpaqueType("Handle"))),
        ],
    )
    def parses_expressions(expect, expr, expected):
        expect(parse_type(expr)) == expected

    def resolves_structs(expect):
        structs = parse("struct Point { x: float64  y: float64 }")
        expect(parse_type("Point[3]", structs)) == ArrayType(3, structs["Point"])

    def rejects_invalid_expressions(expect):
        with pytest.raises(TypeSyntaxError, match="Unknown type Point"):
            parse_type("Point?")
        with pytest.raises(TypeSyntaxError, match="Invalid syntax"):
            parse_type("map<string>")


def describe_format():
    @pytest.mark.parametrize(
        "expr",
        [
            "int32",
            "string?[]",
            "uint8[16]",
            "map<string, int32[]?>",
            "opaque<Channel>?",
        ],
    )
    def round_trips_expressions(expect, expr):
        expect(format_type(parse_type(expr))) == expr

    def writes_byte_as_uint8(expect):
        expect(format_type(parse_type("byte[16]"))) == "uint8[16]"

    def formats_structs(expect):
        structs = parse('struct Person { name: string? @json("name") }')
        expect(format_struct(structs["Person"])) == (
            'struct Person {\n  name: string? @json("name")\n}'
        )

    def escapes_tag_values(expect):
        text = r'struct A { x: string @json("a\"b") }'
        struct = parse(text)["A"]

        expect(format_struct(struct)) == 'struct A {\n  x: string @json("a\\"b")\n}'
        expect(parse(format_struct(struct))["A"]) == struct
