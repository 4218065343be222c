"""PowerShell runspaces.

A runspace is one live PowerShell host. ``PwshRunspace`` keeps a ``pwsh``
(or Windows ``powershell``) process running a small host loop that reads
one JSON request per stdin line, runs it through a nested PowerShell
instance bound to the process's own runspace, and writes one JSON response
per stdout line. Module imports therefore persist across requests served by
the same runspace.
"""

from __future__ import annotations

import base64
import itertools
import json
import os
import queue
import shutil
import subprocess
import threading
import time
from abc import ABC, abstractmethod
from typing import IO, Any, Dict, Optional, Sequence

from pydantic import ValidationError

from ..util.log import Log
from .errors import DisposedError, EngineError, RunspaceBrokenError
from .models import InvocationRequest, InvocationResult

log = Log.create({"service": "pwsh"})

HOST_ARGS = ["-NoLogo", "-NoProfile", "-NonInteractive"]
PROTOCOL_MARKER = "@@psbridge "
SHUTDOWN_TIMEOUT = 5.0

HOST_SCRIPT = r"""
try {
    [Console]::OutputEncoding = [System.Text.UTF8Encoding]::new($false)
    [Console]::InputEncoding = [System.Text.UTF8Encoding]::new($false)
} catch {}

$marker = '@@psbridge '

function ConvertTo-BridgeValue($Value) {
    if ($null -eq $Value) { return $null }
    if ($Value -is [string] -or $Value -is [bool] -or $Value -is [int] -or
        $Value -is [long] -or $Value -is [double] -or $Value -is [decimal]) {
        return $Value
    }
    if ($Value -is [datetime]) { return $Value.ToString('o') }
    return $Value.ToString()
}

function ConvertTo-BridgeRecord($Item) {
    $record = [ordered]@{
        type_names = @($Item.PSObject.TypeNames)
        properties = [ordered]@{}
        value = $null
    }
    if ($Item -is [string] -or $Item -is [ValueType]) {
        $record.value = ConvertTo-BridgeValue $Item
        return $record
    }
    foreach ($property in $Item.PSObject.Properties) {
        try {
            $record.properties[$property.Name] = ConvertTo-BridgeValue $property.Value
        } catch {
            $record.properties[$property.Name] = $null
        }
    }
    return $record
}

function Write-BridgeMessage($Message) {
    [Console]::Out.WriteLine($marker + (ConvertTo-Json -InputObject $Message -Compress -Depth 6))
    [Console]::Out.Flush()
}

Write-BridgeMessage ([ordered]@{ ready = $true; version = "$($PSVersionTable.PSVersion)" })

while ($true) {
    $line = [Console]::In.ReadLine()
    if ($null -eq $line) { break }
    if ($line.Trim() -eq '') { continue }

    $response = [ordered]@{ id = 0; output = @(); errors = @(); had_errors = $false; exception = $null }
    $ps = $null
    try {
        $request = ConvertFrom-Json -InputObject $line
        $response.id = $request.id
        $ps = [powershell]::Create([System.Management.Automation.RunspaceMode]::CurrentRunspace)
        foreach ($command in $request.commands) {
            $null = $ps.AddCommand([string]$command.name)
            foreach ($parameter in $command.parameters.PSObject.Properties) {
                $null = $ps.AddParameter($parameter.Name, $parameter.Value)
            }
            foreach ($argument in $command.arguments) {
                $null = $ps.AddArgument($argument)
            }
        }
        $results = $ps.Invoke()
        $response.output = @(foreach ($item in $results) {
            if ($null -ne $item) { ConvertTo-BridgeRecord $item }
        })
        $response.had_errors = $ps.HadErrors
        $response.errors = @(foreach ($errorRecord in $ps.Streams.Error) { $errorRecord.ToString() })
    } catch {
        $inner = $_.Exception
        while ($null -ne $inner.InnerException) { $inner = $inner.InnerException }
        $response.had_errors = $true
        $response.exception = [ordered]@{ type = $inner.GetType().FullName; message = $inner.Message }
    } finally {
        if ($null -ne $ps) { $ps.Dispose() }
    }
    Write-BridgeMessage $response
}
"""


def find_powershell() -> Optional[str]:
    """Locate a PowerShell executable, preferring PowerShell 7 (``pwsh``)."""
    for name in ("pwsh", "powershell"):
        path = shutil.which(name)
        if path:
            return path
    return None


def encode_command(script: str) -> str:
    """Encode a script for ``-EncodedCommand`` (base64 of UTF-16LE)."""
    return base64.b64encode(script.encode("utf-16-le")).decode("ascii")


class Runspace(ABC):
    """A single live PowerShell host that can serve invocation requests."""

    _ids = itertools.count(1)

    def __init__(self) -> None:
        self.id = next(Runspace._ids)

    @property
    @abstractmethod
    def is_open(self) -> bool: ...

    @abstractmethod
    def open(self) -> None: ...

    @abstractmethod
    def invoke(self, request: InvocationRequest) -> InvocationResult: ...

    @abstractmethod
    def close(self) -> None: ...


class PwshRunspace(Runspace):
    """Runspace backed by a long-lived PowerShell host process."""

    def __init__(
        self,
        executable: Optional[str] = None,
        *,
        arguments: Sequence[str] = (),
        environment: Optional[Dict[str, str]] = None,
        start_timeout: float = 30.0,
        invoke_timeout: Optional[float] = None,
    ):
        super().__init__()
        self.executable = executable
        self.arguments = list(arguments)
        self.environment = dict(environment or {})
        self.start_timeout = start_timeout
        self.invoke_timeout = invoke_timeout
        self.version: Optional[str] = None
        self._process: Optional[subprocess.Popen[str]] = None
        self._lines: "queue.Queue[Optional[str]]" = queue.Queue()

    @property
    def is_open(self) -> bool:
        return self._process is not None and self._process.poll() is None

    def open(self) -> None:
        if self._process is not None:
            raise RuntimeError(f"runspace {self.id} is already open")

        executable = self.executable or find_powershell()
        if not executable:
            raise EngineError("PowerShell executable not found (tried pwsh, powershell)", "FileNotFoundError")

        command = [executable, *HOST_ARGS, *self.arguments, "-EncodedCommand", encode_command(HOST_SCRIPT)]
        env = {**os.environ, "POWERSHELL_TELEMETRY_OPTOUT": "1", **self.environment}

        log.info("starting powershell host", {"runspace": self.id, "executable": executable})
        try:
            self._process = subprocess.Popen(
                command,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                env=env,
            )
        except OSError as e:
            raise EngineError(f"failed to start {executable}: {e}", type(e).__name__) from e

        self._lines = queue.Queue()
        assert self._process.stdout is not None and self._process.stderr is not None
        threading.Thread(
            target=self._pump_stdout,
            args=(self._process.stdout, self._lines),
            name=f"psbridge-runspace-{self.id}-stdout",
            daemon=True,
        ).start()
        threading.Thread(
            target=self._pump_stderr,
            args=(self._process.stderr,),
            name=f"psbridge-runspace-{self.id}-stderr",
            daemon=True,
        ).start()

        try:
            with log.time("powershell host handshake", {"runspace": self.id}):
                hello = self._read_message(self.start_timeout)
        except RunspaceBrokenError:
            self.close()
            raise
        if not hello.get("ready"):
            self.close()
            raise RunspaceBrokenError(f"unexpected handshake from runspace {self.id}: {hello!r}")

        self.version = hello.get("version")
        log.info("powershell host ready", {"runspace": self.id, "version": self.version})

    def invoke(self, request: InvocationRequest) -> InvocationResult:
        if self._process is None:
            raise DisposedError(f"runspace {self.id}")
        stdin = self._process.stdin
        assert stdin is not None

        try:
            stdin.write(request.model_dump_json() + "\n")
            stdin.flush()
        except OSError as e:
            raise RunspaceBrokenError(f"runspace {self.id} stopped accepting requests: {e}") from e

        message = self._read_message(self.invoke_timeout)
        try:
            result = InvocationResult.model_validate(message)
        except ValidationError as e:
            raise RunspaceBrokenError(f"malformed response from runspace {self.id}") from e
        if result.id != request.id:
            raise RunspaceBrokenError(
                f"runspace {self.id} answered request {result.id}, expected {request.id}"
            )
        return result

    def close(self) -> None:
        process = self._process
        if process is None:
            return
        self._process = None

        try:
            if process.stdin:
                process.stdin.close()
        except OSError:
            pass
        try:
            code = process.wait(timeout=SHUTDOWN_TIMEOUT)
        except subprocess.TimeoutExpired:
            process.kill()
            code = process.wait()
        log.info("powershell host stopped", {"runspace": self.id, "exit_code": code})

    def _read_message(self, timeout: Optional[float]) -> Dict[str, Any]:
        """Return the next protocol message, skipping stray host output."""
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            try:
                line = self._lines.get(timeout=remaining)
            except queue.Empty:
                self._kill()
                raise RunspaceBrokenError(f"runspace {self.id} timed out after {timeout}s") from None

            if line is None:
                code = self._process.poll() if self._process else None
                raise RunspaceBrokenError(f"runspace {self.id} exited (exit code {code})")

            if not line.startswith(PROTOCOL_MARKER):
                log.debug("host output", {"runspace": self.id, "line": line})
                continue

            try:
                message = json.loads(line[len(PROTOCOL_MARKER):])
            except json.JSONDecodeError as e:
                raise RunspaceBrokenError(f"unreadable response from runspace {self.id}") from e
            if not isinstance(message, dict):
                raise RunspaceBrokenError(f"unreadable response from runspace {self.id}")
            return message

    def _kill(self) -> None:
        if self._process is not None and self._process.poll() is None:
            self._process.kill()

    @staticmethod
    def _pump_stdout(stream: IO[str], lines: "queue.Queue[Optional[str]]") -> None:
        for line in stream:
            lines.put(line.rstrip("\r\n"))
        lines.put(None)

    def _pump_stderr(self, stream: IO[str]) -> None:
        for line in stream:
            text = line.rstrip()
            if text:
                log.debug("host stderr", {"runspace": self.id, "line": text})
