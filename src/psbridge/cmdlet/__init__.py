"""Fluent cmdlet proxy."""

from .cmdlet import Cmdlet, normalize_command_name

__all__ = ["Cmdlet", "normalize_command_name"]
