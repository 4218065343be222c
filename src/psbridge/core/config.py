"""Configuration management.

Loads and merges configuration from multiple sources with proper precedence.
"""

import json
import os
from contextvars import ContextVar, Token
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from .config_loader import deep_merge, load_json_file
from .config_schema import Config, EngineConfig, LoggingConfig
from .global_paths import GlobalPath
from ..util.log import Log

log = Log.create({"service": "config"})

__all__ = [
    "Config",
    "ConfigError",
    "ConfigManager",
    "EngineConfig",
    "LoggingConfig",
]

CONFIG_FILENAMES = ["psbridge.json", "psbridge.jsonc"]


class ConfigError(Exception):
    """Configuration error."""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"Config error in {path}: {message}")


_config_var: ContextVar['ConfigManager'] = ContextVar('_config_var')


class ConfigManager:
    """Configuration management.

    Instance-based with ContextVar for scoping. Class methods delegate
    to the current instance.

    Loads configuration from multiple sources with proper precedence:
    1. Global config (~/.config/psbridge/psbridge.json)
    2. Project config (psbridge.json found walking up from the directory)
    3. PSBRIDGE_CONFIG_CONTENT environment variable
    """

    def __init__(self) -> None:
        self._cache: Optional[Config] = None
        self._sources: List[str] = []

    # -- ContextVar plumbing --

    @classmethod
    def current(cls) -> 'ConfigManager':
        try:
            return _config_var.get()
        except LookupError:
            instance = cls()
            _config_var.set(instance)
            return instance

    @classmethod
    def provide(cls, instance: 'ConfigManager') -> Token['ConfigManager']:
        return _config_var.set(instance)

    @classmethod
    def restore(cls, token: Token['ConfigManager']) -> None:
        _config_var.reset(token)

    # -- Public API --

    @classmethod
    def reset(cls) -> None:
        """Reset cached configuration."""
        inst = cls.current()
        inst._cache = None
        inst._sources = []

    @classmethod
    def load(cls, directory: str = ".") -> Config:
        return cls.current()._load(directory)

    @classmethod
    def get(cls) -> Config:
        inst = cls.current()
        if inst._cache is None:
            return inst._load()
        return inst._cache

    @classmethod
    def sources(cls) -> List[str]:
        """Paths (or env var names) that contributed to the cached config."""
        return cls.current()._sources.copy()

    # -- Instance methods --

    def _load(self, directory: str = ".") -> Config:
        if self._cache is not None:
            return self._cache

        result: Dict[str, Any] = {}
        sources: List[str] = []

        # 1. Global config
        global_config_dir = GlobalPath.config()
        for filename in ["config.json", *CONFIG_FILENAMES]:
            filepath = os.path.join(global_config_dir, filename)
            data = load_json_file(filepath)
            if data:
                result = deep_merge(result, data)
                sources.append(filepath)
                log.info("loaded global config", {"path": filepath})

        # 2. Project config (search up from directory)
        current = Path(directory).resolve()
        project_configs = []

        while current != current.parent:
            for filename in CONFIG_FILENAMES:
                filepath = current / filename
                if filepath.exists():
                    project_configs.append(str(filepath))
            current = current.parent

        # Root first, then more specific
        for filepath in reversed(project_configs):
            data = load_json_file(filepath)
            if data:
                result = deep_merge(result, data)
                sources.append(filepath)
                log.info("loaded project config", {"path": filepath})

        # 3. Environment variable config
        env_config = os.environ.get("PSBRIDGE_CONFIG_CONTENT")
        if env_config:
            try:
                data = json.loads(env_config)
            except json.JSONDecodeError as e:
                raise ConfigError("PSBRIDGE_CONFIG_CONTENT", str(e)) from e
            result = deep_merge(result, data)
            sources.append("PSBRIDGE_CONFIG_CONTENT")
            log.info("loaded config from PSBRIDGE_CONFIG_CONTENT")

        try:
            config = Config.model_validate(result)
        except ValidationError as e:
            raise ConfigError(", ".join(sources) or "<defaults>", str(e)) from e

        self._sources = sources
        self._cache = config
        return config
