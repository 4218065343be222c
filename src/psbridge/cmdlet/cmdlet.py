"""Fluent cmdlet invocation.

A ``Cmdlet`` turns a call into a staged PowerShell command and runs it on
demand::

    cmdlet = env.cmdlet()
    for record in cmdlet.Get_Process(Name="python").run():
        print(record["ProcessName"])

Attribute calls are sugar for ``call``: underscores in the attribute name
become hyphens, so ``Get_Process`` stages ``Get-Process``. The command must
exist in the session, checked with ``Get-Command`` before anything is staged.
Only keyword arguments become parameters; when any positional argument is
given, all arguments are dropped and the command is staged bare. Wildcard
names are rejected: ``Get-Command`` would match them, but they cannot run.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from ..engine.errors import CommandNotFoundError, NoCommandStagedError
from ..engine.models import ResultRecord
from ..engine.powershell import PowerShell
from ..util.log import Log

log = Log.create({"service": "cmdlet"})

WILDCARD_CHARACTERS = frozenset("*?[")


def normalize_command_name(name: str) -> str:
    """Map a Python identifier onto PowerShell's Verb-Noun naming."""
    return name.replace("_", "-")


class Cmdlet:
    """Stages one command at a time against a shared session."""

    def __init__(self, session: PowerShell):
        self._session = session
        self._command: Optional[str] = None
        self._parameters: Dict[str, Any] = {}

    def __getattr__(self, name: str) -> Callable[..., "Cmdlet"]:
        if name.startswith("_"):
            raise AttributeError(name)

        def stage(*args: Any, **params: Any) -> "Cmdlet":
            return self.call(name, *args, **params)

        return stage

    def __repr__(self) -> str:
        return f"Cmdlet(command={self._command!r}, parameters={self._parameters!r})"

    @property
    def staged_command(self) -> Optional[str]:
        return self._command

    @property
    def staged_parameters(self) -> Dict[str, Any]:
        return dict(self._parameters)

    def call(self, command: str, /, *args: Any, **params: Any) -> "Cmdlet":
        """Stage ``command`` with named parameters and return ``self``.

        Raises:
            CommandNotFoundError: The session has no command by that name.
                Nothing is staged and nothing is executed. Names
                with wildcard characters are never looked up.
        """
        name = normalize_command_name(command)
        self._command = None
        self._parameters.clear()

        if WILDCARD_CHARACTERS.intersection(name) or not self.exists(name):
            raise CommandNotFoundError(name)

        self._command = name
        if args:
            log.warn("positional arguments dropped", {"command": name, "count": len(args)})
        elif params:
            self._parameters.update(params)
        return self

    def exists(self, command: str) -> bool:
        """True iff ``Get-Command`` finds ``command`` in the session."""
        self._session.clear()
        (
            self._session.add_command("Get-Command")
            .add_parameter("Name", command)
            .add_parameter("ErrorAction", "SilentlyContinue")
        )
        return len(self._session.invoke()) > 0

    def run(self) -> List[ResultRecord]:
        """Execute the staged command and return its output records.

        The staged command and parameters are consumed; stage a new call
        before running again.
        """
        if self._command is None:
            raise NoCommandStagedError()

        command, parameters = self._command, self._parameters
        self._command, self._parameters = None, {}

        self._session.clear()
        self._session.add_command(command)
        for key, value in parameters.items():
            self._session.add_parameter(key, value)

        log.debug("running cmdlet", {"command": command, "parameters": sorted(parameters)})
        return self._session.invoke()
