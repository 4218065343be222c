"""Global XDG-compliant directory paths for psbridge.

Log files and the global configuration live in the platform user directories.
"""

import os
from pathlib import Path
from platformdirs import user_config_dir, user_data_dir

APP_NAME = "psbridge"


class GlobalPath:
    """Global path management for psbridge directories."""

    @classmethod
    def data(cls) -> str:
        """Application data directory."""
        return user_data_dir(APP_NAME)

    @classmethod
    def log(cls) -> str:
        """Log file directory."""
        return str(Path(cls.data()) / "log")

    @classmethod
    def config(cls) -> str:
        """Configuration directory, overridable for tests."""
        return os.environ.get("PSBRIDGE_TEST_CONFIG_DIR") or user_config_dir(APP_NAME)
