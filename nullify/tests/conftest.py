"""Unit tests configuration file."""

from types import MappingProxyType

import pytest

from nullify.core.types import (
    STRING,
    ListType,
    ScalarKind,
    ScalarType,
    StructField,
    StructType,
)


def pytest_configure(config):
    """Disable verbose output when running tests."""
    terminal = config.pluginmanager.getplugin("terminal")
    if terminal:
        terminal.TerminalReporter.showfspath = False


@pytest.fixture
def person() -> StructType:
    """A struct with a tagged scalar field and a list field."""
    return StructType(
        name="Person",
        fields=(
            StructField(name="name", type=STRING, metadata=MappingProxyType({"json": "name"})),
            StructField(name="age", type=ScalarType(ScalarKind.UINT8)),
            StructField(name="tags", type=ListType(STRING)),
        ),
    )


@pytest.fixture
def typedef_file(tmp_path):
    """A type definition file on disk."""
    path = tmp_path / "person.nfy"
    path.write_text(
        """
        # People and where they live
        struct Address {
          city: string
        }

        struct Person {
          name: string @json("name") @validate("required")
          age: uint8
          tags: string[]
          home: Address
          avatar: byte[]
        }
        """,
        encoding="utf-8",
    )
    return path
