"""Tests for the recursive nullable transformation."""

# pylint: disable=redefined-outer-name,unused-variable,expression-not-assigned,singleton-comparison

import pytest

from nullify.core.policy import (
    DEFAULT_POLICY,
    PAYLOAD_DECODING,
    Policy,
    build_policy,
    with_array_elements,
    with_bytes_as_text,
    with_list_elements,
    with_map_keys,
    with_map_values,
)
from nullify.core.transform import transform
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
    optional_depth,
    unwrap,
)

INT = ScalarType(ScalarKind.INT)


def nested_optional(t, depth):
    for _ in range(depth):
        t = OptionalType(t)
    return t


def describe_scalars():
    @pytest.mark.parametrize("kind", list(ScalarKind))
    def become_optional(expect, kind):
        t = ScalarType(kind)
        expect(transform(t)) == OptionalType(t)


def describe_structs():
    def keep_field_names_and_metadata(expect, person):
        result = transform(person)

        expect(isinstance(result, OptionalType)) == True
        struct = result.inner
        expect(struct.name) == "Person"
        expect([f.name for f in struct.fields]) == ["name", "age", "tags"]
        expect(struct.fields[0].type) == OptionalType(STRING)
        expect(struct.fields[0].metadata is person.fields[0].metadata) == True
        expect(struct.fields[1].type) == OptionalType(ScalarType(ScalarKind.UINT8))
        expect(struct.fields[2].type) == OptionalType(ListType(OptionalType(STRING)))

    def ignore_wrap_switches_for_fields(expect):
        struct = StructType(
            name="Flags",
            fields=(StructField(name="on", type=ScalarType(ScalarKind.BOOL)),),
        )
        result = transform(struct, PAYLOAD_DECODING)
        expect(result.inner.fields[0].type) == OptionalType(ScalarType(ScalarKind.BOOL))

    def make_nested_structs_optional_fields(expect):
        inner = StructType(name="Inner", fields=(StructField(name="n", type=INT),))
        outer = StructType(name="Outer", fields=(StructField(name="inner", type=inner),))

        field_type = transform(outer).inner.fields[0].type

        expect(field_type) == OptionalType(
            StructType(name="Inner", fields=(StructField(name="n", type=OptionalType(INT)),))
        )

    def leave_the_original_untouched(expect, person):
        before = repr(person)
        transform(person)
        expect(repr(person)) == before


def describe_optionals():
    @pytest.mark.parametrize("depth", [1, 2, 3, 7])
    def collapse_chains_to_one_level(expect, depth):
        expect(transform(nested_optional(INT, depth))) == OptionalType(INT)

    @pytest.mark.parametrize("depth", [1, 4])
    def transform_the_container_below(expect, depth):
        t = nested_optional(ListType(INT), depth)
        expect(transform(t)) == OptionalType(ListType(OptionalType(INT)))

    @pytest.mark.parametrize("t", [OpaqueType("Channel"), OpaqueType("Callable[[int], str]")])
    def wrap_opaque_types_unchanged(expect, t):
        expect(transform(t)) == OptionalType(t)
        expect(transform(OptionalType(OptionalType(t)))) == OptionalType(t)


def describe_sequences():
    def keep_array_length_and_wrap_elements(expect):
        result = transform(ArrayType(length=1, elem=STRING))
        expect(result) == OptionalType(ArrayType(length=1, elem=OptionalType(STRING)))

    def unwrap_array_elements_when_switched_off(expect):
        policy = build_policy([with_array_elements(False)])
        result = transform(ArrayType(length=3, elem=nested_optional(INT, 2)), policy)
        expect(result) == OptionalType(ArrayType(length=3, elem=INT))

    def unwrap_list_elements_when_switched_off(expect):
        policy = build_policy([with_list_elements(False)])
        struct = StructType(name="Point", fields=(StructField(name="x", type=INT),))

        elem = transform(ListType(struct), policy).inner.elem

        expect(isinstance(elem, StructType)) == True
        expect(elem.fields[0].type) == OptionalType(INT)

    @pytest.mark.parametrize("wrap", [True, False])
    @pytest.mark.parametrize("depth", [0, 1, 3])
    def have_exactly_zero_or_one_level(expect, wrap, depth):
        policy = Policy(wrap_array_elements=wrap, wrap_list_elements=wrap)
        elem = nested_optional(INT, depth)

        for container in (ArrayType(length=2, elem=elem), ListType(elem)):
            result = transform(container, policy).inner
            expect(optional_depth(result.elem)) == (1 if wrap else 0)
            expect(unwrap(result.elem)) == INT


def describe_maps():
    @pytest.mark.parametrize(
        "wrap_keys, wrap_values, expected",
        [
            (True, True, MapType(OptionalType(STRING), OptionalType(INT))),
            (True, False, MapType(OptionalType(STRING), INT)),
            (False, True, MapType(STRING, OptionalType(INT))),
            (False, False, MapType(STRING, INT)),
        ],
    )
    def switch_keys_and_values_independently(expect, wrap_keys, wrap_values, expected):
        policy = build_policy([with_map_keys(wrap_keys), with_map_values(wrap_values)])
        expect(transform(MapType(STRING, INT), policy)) == OptionalType(expected)

    def transform_values_recursively(expect):
        result = transform(MapType(STRING, ListType(nested_optional(INT, 2))))
        expect(result.inner.value) == OptionalType(ListType(OptionalType(INT)))


def describe_bytes_as_text():
    @pytest.mark.parametrize(
        "t",
        [
            ListType(BYTE),
            ArrayType(length=16, elem=BYTE),
            ListType(OptionalType(BYTE)),
            ArrayType(length=4, elem=nested_optional(BYTE, 3)),
        ],
    )
    def collapses_byte_sequences(expect, t):
        policy = build_policy([with_bytes_as_text()])
        expect(transform(t, policy)) == OptionalType(STRING)

    def takes_precedence_over_wrap_switches(expect):
        policy = build_policy(
            [with_bytes_as_text(), with_list_elements(True), with_array_elements(False)]
        )
        expect(transform(ListType(BYTE), policy)) == OptionalType(STRING)
        expect(transform(ArrayType(length=2, elem=BYTE), policy)) == OptionalType(STRING)

    def is_off_by_default(expect):
        expect(transform(ListType(BYTE))) == OptionalType(ListType(OptionalType(BYTE)))

    def ignores_other_integer_sequences(expect):
        int8 = ScalarType(ScalarKind.INT8)
        policy = build_policy([with_bytes_as_text()])
        expect(transform(ListType(int8), policy)) == OptionalType(ListType(OptionalType(int8)))


def describe_default_policy():
    def matches_explicit_defaults(expect, person):
        explicit = build_policy(
            [
                with_bytes_as_text(False),
                with_array_elements(True),
                with_list_elements(True),
                with_map_keys(True),
                with_map_values(True),
            ]
        )
        t = MapType(STRING, ArrayType(length=2, elem=person))

        expect(explicit) == DEFAULT_POLICY
        expect(transform(t, explicit)) == transform(t)
