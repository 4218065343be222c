"""Environment facade: one runspace pool, one shared session, module management and cmdlets."""

from __future__ import annotations

from typing import Optional

from ..cmdlet.cmdlet import Cmdlet
from ..core.config_schema import Config
from ..engine.errors import EnvironmentClosedError
from ..engine.pool import RunspaceFactory, RunspacePool
from ..engine.powershell import PowerShell
from ..module.manager import ModuleManager, ModuleNames
from ..runspace.manager import RunspaceManager
from ..util.log import Log

log = Log.create({"service": "environment"})


class Environment:
    """Entry point for running cmdlets and managing modules.

    All cmdlets and module operations share one ``PowerShell`` session.
    An environment is meant for one caller at a time: concurrent use of the
    same instance can interleave staged commands.

    Example:
        with Environment() as env:
            env.import_module(["Microsoft.PowerShell.Utility"])
            for record in env.cmdlet().Get_Process().run():
                print(record["ProcessName"])
    """

    def __init__(self, runspace_manager: Optional[RunspaceManager] = None):
        self._runspace_manager = runspace_manager or RunspaceManager()
        self._session = PowerShell(self._runspace_manager.pool)
        self._module_manager = ModuleManager(self._session)
        self._closed = False
        log.info("environment ready")

    @classmethod
    def from_config(cls, config: Config, factory: Optional[RunspaceFactory] = None) -> "Environment":
        return cls(RunspaceManager.from_config(config.engine, factory))

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pool(self) -> RunspacePool:
        """The runspace pool the shared session runs on."""
        self._check_open()
        return self._runspace_manager.pool

    @property
    def session(self) -> PowerShell:
        self._check_open()
        return self._session

    def install_module(self, names: ModuleNames) -> None:
        self._check_open()
        self._module_manager.install_modules(names)

    def import_module(self, names: ModuleNames) -> None:
        self._check_open()
        self._module_manager.import_modules(names)

    def is_module_installed(self, name: str) -> bool:
        self._check_open()
        return self._module_manager.is_installed(name)

    def cmdlet(self) -> Cmdlet:
        """A fresh cmdlet proxy bound to the shared session."""
        self._check_open()
        return Cmdlet(self._session)

    def close(self) -> None:
        """Dispose the session, then the pool.

        Raises:
            EnvironmentClosedError: The environment was already closed.
        """
        self._check_open()
        self._closed = True
        try:
            self._session.dispose()
        finally:
            self._runspace_manager.dispose()
        log.info("environment closed")

    def __enter__(self) -> "Environment":
        return self

    def __exit__(self, *args) -> None:
        if not self._closed:
            self.close()

    def _check_open(self) -> None:
        if self._closed:
            raise EnvironmentClosedError()
