"""Error formatting utilities.

Turns psbridge errors into one-line messages for the command line.
"""

import json
import traceback
from typing import Any

from ..core.config import ConfigError
from ..engine.errors import (
    CommandNotFoundError,
    DisposedError,
    EngineError,
    ModuleError,
    NoCommandStagedError,
)


def format_error(error: Any) -> str | None:
    """Format known application errors into user-friendly messages.

    Returns None if the error type is not recognized, allowing
    fallback to format_unknown_error.
    """
    if isinstance(error, CommandNotFoundError):
        return f"Command not found: {error.command}"
    if isinstance(error, ModuleError):
        return str(error)
    if isinstance(error, NoCommandStagedError):
        return "No command staged: call a cmdlet before running it"
    if isinstance(error, DisposedError):
        return f"The {error.resource} is closed"
    if isinstance(error, EngineError):
        if error.error_type:
            return f"PowerShell error ({error.error_type}): {error}"
        return f"PowerShell error: {error}"
    if isinstance(error, ConfigError):
        return str(error)
    return None


def format_unknown_error(error: Any) -> str:
    """Format any error into a string representation.

    Handles Exception objects, serializable objects, and primitives.
    """
    if isinstance(error, Exception):
        if error.__traceback__:
            return ''.join(traceback.format_exception(type(error), error, error.__traceback__))
        return f"{error.__class__.__name__}: {error}"

    if isinstance(error, (dict, list)):
        try:
            return json.dumps(error, indent=2)
        except (TypeError, ValueError):
            return "Unexpected error (unserializable)"

    return str(error)
