"""Wire and result models for the PowerShell host protocol."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class PSCommand(BaseModel):
    """One staged command: name, named parameters and positional arguments."""
    name: str
    parameters: Dict[str, Any] = Field(default_factory=dict)
    arguments: List[Any] = Field(default_factory=list)


class InvocationRequest(BaseModel):
    """A pipeline sent to a runspace. Commands are piped in order."""
    id: int
    commands: List[PSCommand]


class ResultRecord(BaseModel):
    """One output object returned by a command invocation.

    Attributes:
        type_names: PowerShell type names, most derived first
        properties: Property name to value; non-primitive values are strings
        value: The object itself when it is a scalar (string, number, bool)
    """
    type_names: List[str] = Field(default_factory=list)
    properties: Dict[str, Any] = Field(default_factory=dict)
    value: Any = None

    def __getitem__(self, name: str) -> Any:
        return self.properties[name]

    def get(self, name: str, default: Any = None) -> Any:
        return self.properties.get(name, default)


class EngineException(BaseModel):
    type: Optional[str] = None
    message: str


class InvocationResult(BaseModel):
    """Response to one ``InvocationRequest``."""
    id: int
    output: List[ResultRecord] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
    had_errors: bool = False
    exception: Optional[EngineException] = None
