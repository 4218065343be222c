"""Module install command."""

from __future__ import annotations

from typing import List

import typer

from .common import open_environment


def install_command(*, modules: List[str], skip_installed: bool = False) -> None:
    """Install modules in order, stopping at the first failure."""
    with open_environment() as env:
        pending = modules
        if skip_installed:
            pending = [name for name in modules if not env.is_module_installed(name)]
            for name in modules:
                if name not in pending:
                    typer.echo(f"Already installed: {name}")

        env.install_module(pending)

    for name in pending:
        typer.echo(f"Installed: {name}")
