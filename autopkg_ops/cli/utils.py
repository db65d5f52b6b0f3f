"""CLI utilities and shared helpers."""

import json
from typing import Any

import click

from autopkg_ops.cli.rich_output import make_console

console = make_console()


def output_json(data: Any, pretty: bool = True) -> None:
    """Output data as JSON."""
    if pretty:
        click.echo(json.dumps(data, indent=2, default=str))
    else:
        click.echo(json.dumps(data, default=str))


def output_table(
    title: str,
    columns: list[tuple[str, str]],
    rows: list[list[str]],
) -> None:
    """Output data as a rich table.

    Args:
        title: Table title
        columns: List of (name, style) tuples
        rows: List of row data (each row is a list of strings)
    """
    from rich.table import Table

    table = Table(title=title)
    for name, style in columns:
        table.add_column(name, style=style)

    for row in rows:
        table.add_row(*row)

    console.print(table)


def mask_secret(value: str, visible: int = 4) -> str:
    """Hide all but the last few characters of a secret."""
    if not value:
        return ""
    if len(value) <= visible:
        return "*" * len(value)
    return "*" * (len(value) - visible) + value[-visible:]
