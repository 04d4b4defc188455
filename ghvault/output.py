"""Output helpers: JSON for scripts, rich tables for people."""

from __future__ import annotations

import json
from dataclasses import asdict, is_dataclass
from typing import Any, Sequence

import typer
from rich.console import Console
from rich.table import Table
from rich.text import Text

console = Console()


def to_jsonable(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    return value


def to_json(value: Any) -> str:
    return json.dumps(to_jsonable(value), indent=2, default=str)


def print_json(value: Any) -> None:
    typer.echo(to_json(value))


def print_table(columns: Sequence[str], rows: Sequence[Sequence[Any]], title: str | None = None) -> None:
    if not rows:
        console.print("[dim]No results.[/dim]")
        return

    table = Table(title=title, show_edge=False, header_style="bold")
    for column in columns:
        table.add_column(column)
    for row in rows:
        table.add_row(*(cell if isinstance(cell, Text) else Text(str(cell)) for cell in row))
    console.print(table)


def state_style(state: str) -> Text:
    """Color a PR/run/check state for text output."""
    colors = {
        "open": "green",
        "success": "green",
        "pass": "green",
        "active": "green",
        "closed": "red",
        "failure": "red",
        "fail": "red",
        "merged": "magenta",
        "in_progress": "yellow",
        "queued": "yellow",
        "pending": "yellow",
    }
    return Text(state, style=colors.get(state, ""))
