"""Lazily created runspace pool holder."""

from __future__ import annotations

import threading
from typing import Optional

from ..core.config_schema import EngineConfig
from ..engine.errors import DisposedError
from ..engine.pool import RunspaceFactory, RunspacePool
from ..engine.runspace import PwshRunspace
from ..util.log import Log

log = Log.create({"service": "runspace"})

DEFAULT_MIN_RUNSPACES = 1
DEFAULT_MAX_RUNSPACES = 5


def pwsh_factory(config: EngineConfig) -> RunspaceFactory:
    """Build a factory producing ``PwshRunspace`` instances from engine config."""
    def create() -> PwshRunspace:
        return PwshRunspace(
            config.executable,
            arguments=config.arguments,
            environment=config.environment,
            start_timeout=config.start_timeout,
            invoke_timeout=config.invoke_timeout,
        )

    return create


class RunspaceManager:
    """Owns one runspace pool, created and opened on first access."""

    def __init__(
        self,
        factory: Optional[RunspaceFactory] = None,
        *,
        min_runspaces: int = DEFAULT_MIN_RUNSPACES,
        max_runspaces: int = DEFAULT_MAX_RUNSPACES,
    ):
        self._factory = factory or pwsh_factory(EngineConfig())
        self.min_runspaces = min_runspaces
        self.max_runspaces = max_runspaces
        self._pool: Optional[RunspacePool] = None
        self._lock = threading.Lock()
        self._disposed = False

    @classmethod
    def from_config(cls, config: EngineConfig, factory: Optional[RunspaceFactory] = None) -> "RunspaceManager":
        return cls(
            factory or pwsh_factory(config),
            min_runspaces=config.min_runspaces,
            max_runspaces=config.max_runspaces,
        )

    @property
    def is_created(self) -> bool:
        return self._pool is not None

    @property
    def pool(self) -> RunspacePool:
        """The pool, created and opened exactly once."""
        if self._pool is not None and not self._disposed:
            return self._pool

        with self._lock:
            if self._disposed:
                raise DisposedError("runspace manager")
            if self._pool is None:
                pool = RunspacePool(self.min_runspaces, self.max_runspaces, self._factory)
                pool.open()
                self._pool = pool
                log.info("runspace pool created", {"min": self.min_runspaces, "max": self.max_runspaces})
        return self._pool

    def dispose(self) -> None:
        """Close the pool. Valid once; later pool use raises ``DisposedError``."""
        with self._lock:
            if self._disposed:
                raise DisposedError("runspace manager")
            self._disposed = True
            pool = self._pool

        if pool is not None:
            pool.close()
        log.info("runspace manager disposed")
