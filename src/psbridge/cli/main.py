"""CLI entry point for psbridge."""

import json
from typing import List, Optional

import typer

from .. import __version__
from ..runtime.logging import bootstrap_logging

app = typer.Typer(
    name="psbridge",
    help="psbridge - run PowerShell cmdlets and manage modules",
    no_args_is_help=True,
    add_completion=False,
)


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"psbridge {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Log level: debug, info, warn, error",
    ),
    log_format: Optional[str] = typer.Option(
        None,
        "--log-format",
        help="Log format: kv, json, pretty",
    ),
    print_logs: bool = typer.Option(
        False,
        "--print-logs",
        help="Write logs to stderr instead of the log file",
    ),
):
    """Run PowerShell cmdlets through a pooled PowerShell host."""
    bootstrap_logging(
        level=log_level,
        format=log_format,
        console=True if print_logs else None,
        file=False if print_logs else None,
    )


@app.command()
def invoke(
    name: str = typer.Argument(..., help="Cmdlet name, e.g. Get-Process or Get_Process"),
    param: Optional[List[str]] = typer.Option(
        None,
        "--param",
        "-p",
        help="Parameter as Key=Value (JSON values allowed); a bare Key is a switch",
    ),
    module: Optional[List[str]] = typer.Option(
        None,
        "--import",
        "-i",
        help="Module(s) to import before invoking",
    ),
    prop: Optional[List[str]] = typer.Option(
        None,
        "--property",
        "-P",
        help="Property columns to show",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output records as JSON",
    ),
):
    """Invoke a cmdlet and print its output."""
    from .cmd.common import parse_parameters
    from .cmd.invoke import invoke_command

    invoke_command(
        name=name,
        parameters=parse_parameters(param or []),
        modules=module,
        properties=prop,
        json_output=json_output,
    )


@app.command()
def processes():
    """List running process names (Get-Process)."""
    from .cmd.invoke import processes_command

    processes_command()


@app.command()
def install(
    modules: List[str] = typer.Argument(..., help="Module(s) to install, in order"),
    skip_installed: bool = typer.Option(
        False,
        "--skip-installed",
        help="Skip modules Get-Module -ListAvailable already finds",
    ),
):
    """Install modules for the current user."""
    from .cmd.module import install_command

    install_command(modules=modules, skip_installed=skip_installed)


@app.command()
def config(
    show: bool = typer.Option(
        False,
        "--show",
        help="Show current configuration",
    ),
):
    """Show configuration information."""
    from ..core.config import ConfigManager
    from ..core.global_paths import GlobalPath

    if not show:
        typer.echo(f"Config directory: {GlobalPath.config()}")
        typer.echo("Use --show to display the resolved configuration")
        return

    cfg = ConfigManager.get()
    typer.echo(json.dumps(
        {"sources": ConfigManager.sources(), "config": cfg.model_dump(mode="json")},
        indent=2,
    ))


if __name__ == "__main__":
    app()
