"""Module installation and import through a shared PowerShell session."""

from __future__ import annotations

from typing import Iterable, List, Union

from ..engine.errors import ModuleImportError, ModuleInstallError
from ..engine.powershell import PowerShell
from ..util.log import Log

log = Log.create({"service": "module"})

INSTALL_SCOPE = "CurrentUser"

ModuleNames = Union[str, Iterable[str]]


def module_list(names: ModuleNames) -> List[str]:
    """A single module name is one module, not a sequence of characters."""
    if isinstance(names, str):
        return [names]
    return list(names)


class ModuleManager:
    """Installs and imports modules one at a time, in order, stopping at the first failure.

    Every operation clears and restages the shared session's command buffer.
    """

    def __init__(self, session: PowerShell):
        self._session = session

    def import_modules(self, names: ModuleNames) -> None:
        """Import each module into the session.

        Terminating engine errors propagate unchanged. A non-terminating
        failure (for example an unknown module name) raises
        ``ModuleImportError`` and no later module is imported.
        """
        for name in module_list(names):
            self._session.clear()
            self._session.add_command("Import-Module").add_argument(name)
            self._session.invoke()
            if self._session.had_errors:
                raise ModuleImportError(name, self._session.errors)
            log.info("imported module", {"module": name})

    def install_modules(self, names: ModuleNames) -> None:
        """Install each module for the current user, allowing command clobbering.

        Raises ``ModuleInstallError`` naming the first module whose install
        reported errors; modules before it stay installed and modules after
        it are not attempted.
        """
        log.info("starting installation of PowerShell modules")

        for name in module_list(names):
            self._session.clear()
            (
                self._session.add_command("Install-Module")
                .add_parameter("Name", name)
                .add_parameter("AllowClobber", True)
                .add_parameter("Scope", INSTALL_SCOPE)
            )
            self._session.invoke()

            if self._session.had_errors:
                log.error("module install failed", {"module": name, "errors": self._session.errors})
                raise ModuleInstallError(name, self._session.errors)

            log.info("successfully installed module", {"module": name})

    def is_installed(self, name: str) -> bool:
        """True iff ``Get-Module -ListAvailable`` finds the module."""
        self._session.clear()
        (
            self._session.add_command("Get-Module")
            .add_parameter("Name", name)
            .add_parameter("ListAvailable", True)
        )
        return len(self._session.invoke()) > 0
