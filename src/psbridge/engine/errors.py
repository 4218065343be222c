"""Exception types raised by the PowerShell bridge.

Engine failures are surfaced as ``EngineError`` without translation; the
remaining classes are the few failures this package detects itself.
"""

from __future__ import annotations

from typing import Sequence


class PSBridgeError(Exception):
    """Base class for all psbridge errors."""


class EngineError(PSBridgeError):
    """A terminating error reported by the PowerShell engine."""

    def __init__(self, message: str, error_type: str | None = None):
        self.error_type = error_type
        super().__init__(message)


class RunspaceBrokenError(EngineError):
    """The runspace host process exited or produced unreadable output."""


class DisposedError(PSBridgeError):
    """An operation was attempted on a disposed resource."""

    def __init__(self, resource: str):
        self.resource = resource
        super().__init__(f"{resource} has been disposed")


class EnvironmentClosedError(DisposedError):
    """The environment was already closed."""

    def __init__(self) -> None:
        super().__init__("environment")


class CommandNotFoundError(PSBridgeError):
    """The command is not available in the current session."""

    def __init__(self, command: str):
        self.command = command
        super().__init__(f"The cmdlet '{command}' is not available in the current PowerShell session.")


class NoCommandStagedError(PSBridgeError):
    """``run()`` was called before any command was staged."""

    def __init__(self) -> None:
        super().__init__("no command staged; call a cmdlet before run()")


class ModuleError(PSBridgeError):
    """A module operation failed."""

    action = "process"

    def __init__(self, module: str, errors: Sequence[str] = ()):
        self.module = module
        self.errors = list(errors)
        message = f"Failed to {self.action} PowerShell module: {module}"
        if self.errors:
            message += " (" + "; ".join(self.errors) + ")"
        super().__init__(message)


class ModuleInstallError(ModuleError):
    action = "install"


class ModuleImportError(ModuleError):
    action = "import"
