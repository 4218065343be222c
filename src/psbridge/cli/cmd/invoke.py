"""Invoke an arbitrary cmdlet."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import typer

from .common import open_environment, render_records


def invoke_command(
    *,
    name: str,
    parameters: Dict[str, Any],
    modules: Optional[List[str]] = None,
    properties: Optional[List[str]] = None,
    json_output: bool = False,
) -> None:
    """Stage and run one cmdlet, importing ``modules`` first."""
    with open_environment() as env:
        if modules:
            env.import_module(modules)
        records = env.cmdlet().call(name, **parameters).run()

    if json_output:
        typer.echo(json.dumps([record.model_dump(mode="json") for record in records], indent=2))
        return
    render_records(records, properties)


def processes_command() -> None:
    """List running processes by name."""
    with open_environment() as env:
        results = env.cmdlet().Get_Process().run()

    for record in results:
        typer.echo(record.get("ProcessName"))
