"""Shared test helpers: an in-process engine standing in for PowerShell."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from psbridge.engine.models import (
    EngineException,
    InvocationRequest,
    InvocationResult,
    PSCommand,
    ResultRecord,
)
from psbridge.engine.runspace import Runspace


def record(**properties: Any) -> ResultRecord:
    return ResultRecord(
        type_names=["System.Management.Automation.PSCustomObject", "System.Object"],
        properties=properties,
    )


@dataclass
class Outcome:
    output: List[ResultRecord] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    exception: Optional[EngineException] = None


Handler = Callable[[PSCommand], Outcome]

PROCESSES = [
    record(ProcessName="pwsh", Id=101),
    record(ProcessName="python", Id=202),
]


class FakeEngine:
    """Answers invocation requests from a command table and records them.

    Only the first command of a pipeline is dispatched.
    """

    def __init__(self) -> None:
        self.requests: List[InvocationRequest] = []
        self.available_modules: set[str] = {"Microsoft.PowerShell.Utility"}
        self.imported_modules: List[str] = []
        self.failing_installs: set[str] = set()
        self.runspaces: List["FakeRunspace"] = []
        self.fail_open = False
        self.handlers: Dict[str, Handler] = {
            "Get-Command": self._get_command,
            "Get-Process": self._get_process,
            "Get-Module": self._get_module,
            "Import-Module": self._import_module,
            "Install-Module": self._install_module,
        }

    def factory(self) -> "FakeRunspace":
        runspace = FakeRunspace(self)
        self.runspaces.append(runspace)
        return runspace

    def command_names(self) -> List[str]:
        return [request.commands[0].name for request in self.requests]

    def commands(self, name: str) -> List[PSCommand]:
        return [request.commands[0] for request in self.requests if request.commands[0].name == name]

    def handle(self, request: InvocationRequest) -> InvocationResult:
        self.requests.append(request)
        command = request.commands[0]
        handler = self.handlers.get(command.name)
        if handler is None:
            outcome = Outcome(exception=EngineException(
                type="System.Management.Automation.CommandNotFoundException",
                message=f"The term '{command.name}' is not recognized as a name of a cmdlet.",
            ))
        else:
            outcome = handler(command)
        return InvocationResult(
            id=request.id,
            output=outcome.output,
            errors=outcome.errors,
            had_errors=bool(outcome.errors) or outcome.exception is not None,
            exception=outcome.exception,
        )

    def _get_command(self, command: PSCommand) -> Outcome:
        name = command.parameters.get("Name")
        if name in self.handlers:
            return Outcome(output=[record(Name=name, CommandType="Cmdlet")])
        return Outcome()

    def _get_process(self, command: PSCommand) -> Outcome:
        name = command.parameters.get("Name")
        if name is None:
            return Outcome(output=list(PROCESSES))
        return Outcome(output=[p for p in PROCESSES if p["ProcessName"] == name])

    def _get_module(self, command: PSCommand) -> Outcome:
        name = command.parameters.get("Name")
        if name in self.available_modules:
            return Outcome(output=[record(Name=name, Version="1.0.0")])
        return Outcome()

    def _import_module(self, command: PSCommand) -> Outcome:
        name = command.arguments[0]
        if name not in self.available_modules:
            return Outcome(errors=[f"The specified module '{name}' was not loaded"])
        self.imported_modules.append(name)
        return Outcome()

    def _install_module(self, command: PSCommand) -> Outcome:
        name = command.parameters["Name"]
        if name in self.failing_installs:
            return Outcome(errors=[f"No match was found for the specified search criteria and module name '{name}'"])
        self.available_modules.add(name)
        return Outcome()


class FakeRunspace(Runspace):
    def __init__(self, engine: FakeEngine) -> None:
        super().__init__()
        self.engine = engine
        self.opened = False
        self.closed = False

    @property
    def is_open(self) -> bool:
        return self.opened and not self.closed

    def open(self) -> None:
        if self.engine.fail_open:
            raise OSError("cannot start host")
        self.opened = True

    def invoke(self, request: InvocationRequest) -> InvocationResult:
        return self.engine.handle(request)

    def close(self) -> None:
        self.closed = True
