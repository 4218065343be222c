"""The shared execution context.

``PowerShell`` stages a pipeline of commands and runs it on a runspace
borrowed from its pool. The command buffer is plain mutable state with no
locking: one caller at a time.
"""

from __future__ import annotations

import itertools
from typing import Any, List, Optional

from ..util.log import Log
from .errors import DisposedError, EngineError
from .models import InvocationRequest, PSCommand, ResultRecord
from .pool import RunspacePool

log = Log.create({"service": "powershell"})


class PowerShell:
    """Command buffer bound to a runspace pool."""

    def __init__(self, runspace_pool: Optional[RunspacePool] = None):
        self.runspace_pool = runspace_pool
        self.commands: List[PSCommand] = []
        self.had_errors = False
        self.errors: List[str] = []
        self._disposed = False
        self._request_ids = itertools.count(1)

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def add_command(self, name: str) -> "PowerShell":
        """Append a command; a second command pipes the first into it."""
        self._check_disposed()
        self.commands.append(PSCommand(name=name))
        return self

    def add_parameter(self, name: str, value: Any = True) -> "PowerShell":
        """Add a named parameter to the last command. A bare name is a switch."""
        self._current("parameter").parameters[name] = value
        return self

    def add_argument(self, value: Any) -> "PowerShell":
        """Add a positional argument to the last command."""
        self._current("argument").arguments.append(value)
        return self

    def clear(self) -> None:
        """Empty the command buffer."""
        self.commands.clear()

    def invoke(self) -> List[ResultRecord]:
        """Run the staged pipeline and return its output records.

        Sets ``had_errors`` and ``errors`` from the engine's error stream.
        A terminating engine error is raised as ``EngineError``.
        """
        self._check_disposed()
        if self.runspace_pool is None:
            raise EngineError("no runspace pool is bound to this PowerShell instance", "InvalidOperationException")
        if not self.commands:
            raise EngineError("No commands are added to this PowerShell instance.", "InvalidPowerShellStateException")

        request = InvocationRequest(
            id=next(self._request_ids),
            commands=[command.model_copy(deep=True) for command in self.commands],
        )
        names = [command.name for command in request.commands]
        log.debug("invoke", {"commands": names})

        self.had_errors = False
        self.errors = []
        with self.runspace_pool.lease() as runspace:
            result = runspace.invoke(request)

        self.had_errors = result.had_errors
        self.errors = list(result.errors)
        if result.exception is not None:
            log.debug("engine exception", {"commands": names, "type": result.exception.type})
            raise EngineError(result.exception.message, result.exception.type)
        if result.had_errors:
            log.debug("invocation had errors", {"commands": names, "errors": self.errors})
        return result.output

    def dispose(self) -> None:
        """Release the context. The pool it is bound to is not closed."""
        self._check_disposed()
        self._disposed = True
        self.commands.clear()

    def _current(self, what: str) -> PSCommand:
        self._check_disposed()
        if not self.commands:
            raise ValueError(f"a command is required to add a {what}")
        return self.commands[-1]

    def _check_disposed(self) -> None:
        if self._disposed:
            raise DisposedError("PowerShell session")
