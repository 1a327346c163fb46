"""Command-line interface for nullify."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from nullify.core.policy import (
    Option,
    build_policy,
    payload_decoding,
    with_array_elements,
    with_bytes_as_text,
    with_list_elements,
    with_map_keys,
    with_map_values,
)
from nullify.core.transform import transform
from nullify.core.types import OptionalType, StructType, format_type, to_dict
from nullify.generator import python
from nullify.generator.parser import TypeSyntaxError, parse, parse_type
from nullify.generator.python import RenderError

if TYPE_CHECKING:
    from nullify.core.policy import Policy
    from nullify.core.types import TypeDescriptor

logger = logging.getLogger(__name__)

EXPRESSION_NAME = "Nullified"

# (flag name, option factory) for each policy switch
_SWITCHES: list[tuple[str, Callable[[bool], Option]]] = [
    ("bytes_as_text", with_bytes_as_text),
    ("wrap_array_elements", with_array_elements),
    ("wrap_list_elements", with_list_elements),
    ("wrap_map_keys", with_map_keys),
    ("wrap_map_values", with_map_values),
]


def policy_options(f: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the policy switches to a command."""
    for name, _ in reversed(_SWITCHES):
        flag = name.replace("_", "-")
        f = click.option(
            f"--{flag}/--no-{flag}",
            name,
            default=None,
            help=f"Override the {flag} switch",
        )(f)
    return click.option(
        "--payload",
        is_flag=True,
        default=False,
        help="Start from the payload decoding preset (bytes as text, no container wrapping)",
    )(f)


def _build_policy(payload: bool, switches: dict[str, bool | None]) -> Policy:
    options: list[Option] = []
    if payload:
        options.append(payload_decoding())
    for name, factory in _SWITCHES:
        value = switches.get(name)
        if value is not None:
            options.append(factory(value))
    return build_policy(options)


def _load_roots(
    input_file: str | None, names: tuple[str, ...], expr: str | None
) -> dict[str, TypeDescriptor]:
    """Resolve the types selected on the command line."""
    structs: dict[str, StructType] = {}
    if input_file:
        with open(input_file, encoding="utf-8") as f:
            structs = parse(f.read())
    elif not expr:
        raise click.UsageError("Either --input or --expr is required")

    roots: dict[str, TypeDescriptor] = {}
    for name in names:
        if name not in structs:
            raise click.ClickException(f"Unknown struct {name}")
        roots[name] = structs[name]
    if expr:
        roots[EXPRESSION_NAME] = parse_type(expr, structs)
    if not roots:
        roots.update(structs)
    return roots


@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Synthesize nullable versions of types."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        )


@cli.command()
@click.option("--input", "-i", "input_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--type", "-t", "names", multiple=True, help="Struct to show (repeatable)")
@click.option("--expr", "-e", default=None, help="Type expression to show")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@policy_options
def show(
    input_file: str | None,
    names: tuple[str, ...],
    expr: str | None,
    output_json: bool,
    payload: bool,
    **switches: bool | None,
) -> None:
    """Show types next to their nullable versions."""
    policy = _build_policy(payload, switches)
    try:
        roots = _load_roots(input_file, names, expr)
    except TypeSyntaxError as e:
        raise click.ClickException(str(e)) from e

    logger.debug("Using %s", policy)
    nullified = {name: transform(t, policy) for name, t in roots.items()}

    if output_json:
        data = {
            name: {"original": to_dict(t), "nullified": to_dict(nullified[name])}
            for name, t in roots.items()
        }
        click.echo(json.dumps(data, indent=2))
    else:
        _output_plain(roots, nullified)


def _output_plain(roots: dict[str, TypeDescriptor], nullified: dict[str, TypeDescriptor]) -> None:
    """Output types using rich text formatting."""
    console = Console()

    for name, t in roots.items():
        result = nullified[name]
        header = f"{escape(format_type(t))} -> {escape(format_type(result))}"
        console.print(f"[bold cyan]{name}[/bold cyan]  {header}")

        inner = result.inner if isinstance(result, OptionalType) else result
        if isinstance(t, StructType) and isinstance(inner, StructType):
            table = Table(show_header=True, box=None, padding=(0, 2, 0, 0))
            table.add_column("Field", style="white")
            table.add_column("Type", style="dim")
            table.add_column("Nullified", style="yellow")
            table.add_column("Metadata", style="green")

            for original, nullable in zip(t.fields, inner.fields):
                metadata = " ".join(f"{key}={value}" for key, value in nullable.metadata.items())
                table.add_row(
                    nullable.name,
                    escape(format_type(original.type)),
                    escape(format_type(nullable.type)),
                    escape(metadata),
                )

            console.print(table)
        console.print()


@cli.command()
@click.option("--input", "-i", "input_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", "-o", "output_file", required=True, help="Output file")
@click.option("--type", "-t", "names", multiple=True, help="Struct to generate (repeatable)")
@click.option("--expr", "-e", default=None, help="Type expression to generate")
@policy_options
def gen(
    input_file: str | None,
    output_file: str,
    names: tuple[str, ...],
    expr: str | None,
    payload: bool,
    **switches: bool | None,
) -> None:
    """Generate Python dataclasses for the nullable types."""
    policy = _build_policy(payload, switches)
    try:
        roots = _load_roots(input_file, names, expr)
        generated_file = python.render({name: transform(t, policy) for name, t in roots.items()})
    except (TypeSyntaxError, RenderError) as e:
        raise click.ClickException(str(e)) from e

    with open(output_file, "w", encoding="utf-8") as f:
        f.write(generated_file)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
