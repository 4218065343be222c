"""psbridge - fluent PowerShell cmdlet invocation from Python.

Runs cmdlets through a pooled PowerShell host, with module install and
import helpers.
"""

__version__ = "0.1.0"


# Lazy imports to keep `import psbridge` cheap
def __getattr__(name: str):
    """Lazy import package components."""
    if name == "Environment":
        from .environment import Environment
        return Environment
    if name in ("Cmdlet", "normalize_command_name"):
        from . import cmdlet
        return getattr(cmdlet, name)
    if name == "ModuleManager":
        from .module import ModuleManager
        return ModuleManager
    if name == "RunspaceManager":
        from .runspace import RunspaceManager
        return RunspaceManager
    if name in (
        "PowerShell",
        "ResultRecord",
        "RunspacePool",
        "PSBridgeError",
        "EngineError",
        "RunspaceBrokenError",
        "DisposedError",
        "EnvironmentClosedError",
        "CommandNotFoundError",
        "NoCommandStagedError",
        "ModuleError",
        "ModuleInstallError",
        "ModuleImportError",
    ):
        from . import engine
        return getattr(engine, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "__version__",
    "Environment",
    "Cmdlet",
    "normalize_command_name",
    "ModuleManager",
    "RunspaceManager",
    "PowerShell",
    "ResultRecord",
    "RunspacePool",
    "PSBridgeError",
    "EngineError",
    "RunspaceBrokenError",
    "DisposedError",
    "EnvironmentClosedError",
    "CommandNotFoundError",
    "NoCommandStagedError",
    "ModuleError",
    "ModuleInstallError",
    "ModuleImportError",
]
