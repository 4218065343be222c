"""Bounded runspace pool.

The pool opens ``min_runspaces`` runspaces up front and grows on demand to
``max_runspaces``. Idle runspaces are handed out most recently released
first, so a single sequential caller keeps reusing the same warm runspace
and sees the modules it imported earlier.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Callable, Iterator, List, Literal

from ..util.log import Log
from .errors import DisposedError, RunspaceBrokenError
from .runspace import Runspace

log = Log.create({"service": "runspace.pool"})

PoolState = Literal["created", "opened", "closed"]
RunspaceFactory = Callable[[], Runspace]


class RunspacePool:
    """Thread-safe bounded set of reusable runspaces."""

    def __init__(self, min_runspaces: int, max_runspaces: int, factory: RunspaceFactory):
        if min_runspaces < 1:
            raise ValueError(f"min_runspaces must be >= 1, got {min_runspaces}")
        if max_runspaces < min_runspaces:
            raise ValueError(
                f"max_runspaces ({max_runspaces}) must be >= min_runspaces ({min_runspaces})"
            )
        self.min_runspaces = min_runspaces
        self.max_runspaces = max_runspaces
        self._factory = factory
        self._cond = threading.Condition()
        self._idle: List[Runspace] = []
        self._total = 0
        self._state: PoolState = "created"

    @property
    def state(self) -> PoolState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state == "opened"

    @property
    def size(self) -> int:
        """Number of live runspaces, idle or leased."""
        return self._total

    @property
    def idle_count(self) -> int:
        return len(self._idle)

    def open(self) -> None:
        """Start the minimum number of runspaces. Valid once."""
        with self._cond:
            if self._state == "closed":
                raise DisposedError("runspace pool")
            if self._state == "opened":
                raise RuntimeError("runspace pool is already open")

        started: List[Runspace] = []
        try:
            for _ in range(self.min_runspaces):
                runspace = self._factory()
                runspace.open()
                started.append(runspace)
        except BaseException:
            for runspace in started:
                runspace.close()
            raise

        with self._cond:
            self._idle.extend(started)
            self._total = len(started)
            self._state = "opened"
        log.info("runspace pool opened", {"min": self.min_runspaces, "max": self.max_runspaces})

    def acquire(self) -> Runspace:
        """Take an idle runspace, start a new one below the cap, or wait."""
        with self._cond:
            while True:
                self._check_open()
                if self._idle:
                    return self._idle.pop()
                if self._total < self.max_runspaces:
                    self._total += 1
                    break
                self._cond.wait()

        try:
            runspace = self._factory()
            runspace.open()
        except BaseException:
            with self._cond:
                self._total -= 1
                self._cond.notify()
            raise
        log.debug("runspace pool grew", {"runspace": runspace.id, "size": self._total})
        return runspace

    def release(self, runspace: Runspace, *, broken: bool = False) -> None:
        """Return a leased runspace. Broken or closed runspaces are discarded."""
        discard = False
        with self._cond:
            if self._state != "opened" or broken or not runspace.is_open:
                self._total -= 1
                discard = True
            else:
                self._idle.append(runspace)
            self._cond.notify()

        if discard:
            log.debug("discarding runspace", {"runspace": runspace.id, "broken": broken})
            runspace.close()

    @contextmanager
    def lease(self) -> Iterator[Runspace]:
        runspace = self.acquire()
        broken = False
        try:
            yield runspace
        except RunspaceBrokenError:
            broken = True
            raise
        finally:
            self.release(runspace, broken=broken)

    def close(self) -> None:
        """Close idle runspaces; leased ones are closed when released."""
        with self._cond:
            if self._state == "closed":
                raise DisposedError("runspace pool")
            self._state = "closed"
            idle = self._idle
            self._idle = []
            self._total -= len(idle)
            self._cond.notify_all()

        for runspace in idle:
            runspace.close()
        log.info("runspace pool closed", {"closed": len(idle)})

    def _check_open(self) -> None:
        if self._state == "closed":
            raise DisposedError("runspace pool")
        if self._state != "opened":
            raise RuntimeError("runspace pool is not open")
