"""Helpers shared by CLI commands."""

from __future__ import annotations

import json
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, NoReturn

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ...core.config import ConfigError, ConfigManager
from ...engine.errors import PSBridgeError
from ...engine.models import ResultRecord
from ...environment import Environment
from ...util.error import format_error, format_unknown_error
from ...util.log import Log

log = Log.create({"service": "cli"})

console = Console(stderr=True)

MAX_TABLE_COLUMNS = 6


@contextmanager
def open_environment() -> Iterator[Environment]:
    """Build an environment from config; report psbridge errors and exit 1."""
    try:
        env = Environment.from_config(ConfigManager.get())
    except (PSBridgeError, ConfigError) as e:
        fail(e)
    try:
        yield env
    except PSBridgeError as e:
        fail(e)
    finally:
        if not env.closed:
            env.close()


def fail(error: Exception) -> NoReturn:
    message = format_error(error) or format_unknown_error(error)
    log.error("command failed", {"error": error})
    console.print(f"[red]Error:[/red] {escape(message)}", highlight=False)
    raise typer.Exit(1)


def parse_parameters(items: List[str]) -> Dict[str, Any]:
    """Parse ``Key=Value`` items. Values are JSON when they parse, else strings; a bare ``Key`` is a switch."""
    parameters: Dict[str, Any] = {}
    for item in items:
        key, sep, raw = item.partition("=")
        key = key.strip()
        if not key:
            raise typer.BadParameter(f"missing parameter name in {item!r}")
        if not sep:
            parameters[key] = True
            continue
        try:
            parameters[key] = json.loads(raw)
        except json.JSONDecodeError:
            parameters[key] = raw
    return parameters


def render_records(records: List[ResultRecord], properties: List[str] | None = None) -> None:
    """Print scalar records one per line, object records as a table."""
    if not records:
        return

    if all(not record.properties for record in records):
        for record in records:
            typer.echo("" if record.value is None else str(record.value))
        return

    columns = properties or list(records[0].properties)[:MAX_TABLE_COLUMNS]
    table = Table(*columns)
    for record in records:
        table.add_row(*("" if record.get(c) is None else str(record.get(c)) for c in columns))
    Console().print(table)
