"""Core infrastructure modules."""

from .global_paths import GlobalPath

__all__ = ["GlobalPath"]

# Config imports the logger, which imports GlobalPath from here.
# To use: from psbridge.core.config import ConfigManager
