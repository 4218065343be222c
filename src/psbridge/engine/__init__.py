"""PowerShell engine binding.

The narrow interface the rest of the package consumes: a ``PowerShell``
command buffer, the ``RunspacePool`` it runs on, and the runspaces that
host the PowerShell process.

Example:
    from psbridge.engine import PowerShell, PwshRunspace, RunspacePool

    pool = RunspacePool(1, 5, PwshRunspace)
    pool.open()
    ps = PowerShell(pool)
    for record in ps.add_command("Get-Date").invoke():
        print(record.value)
    pool.close()
"""

from .errors import (
    CommandNotFoundError,
    DisposedError,
    EngineError,
    EnvironmentClosedError,
    ModuleError,
    ModuleImportError,
    ModuleInstallError,
    NoCommandStagedError,
    PSBridgeError,
    RunspaceBrokenError,
)
from .models import InvocationRequest, InvocationResult, PSCommand, ResultRecord
from .pool import RunspacePool
from .powershell import PowerShell
from .runspace import PwshRunspace, Runspace, find_powershell

__all__ = [
    "CommandNotFoundError",
    "DisposedError",
    "EngineError",
    "EnvironmentClosedError",
    "InvocationRequest",
    "InvocationResult",
    "ModuleError",
    "ModuleImportError",
    "ModuleInstallError",
    "NoCommandStagedError",
    "PSBridgeError",
    "PSCommand",
    "PowerShell",
    "PwshRunspace",
    "ResultRecord",
    "Runspace",
    "RunspaceBrokenError",
    "RunspacePool",
    "find_powershell",
]
