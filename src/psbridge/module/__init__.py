"""PowerShell module management."""

from .manager import INSTALL_SCOPE, ModuleManager, ModuleNames, module_list

__all__ = ["INSTALL_SCOPE", "ModuleManager", "ModuleNames", "module_list"]
