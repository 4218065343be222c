"""Runspace pool ownership."""

from .manager import DEFAULT_MAX_RUNSPACES, DEFAULT_MIN_RUNSPACES, RunspaceManager, pwsh_factory

__all__ = [
    "DEFAULT_MAX_RUNSPACES",
    "DEFAULT_MIN_RUNSPACES",
    "RunspaceManager",
    "pwsh_factory",
]
