import pytest

from psbridge.engine import DisposedError, EngineError, PowerShell, RunspaceBrokenError, RunspacePool
from tests.helpers import FakeEngine


@pytest.fixture
def pool(engine: FakeEngine):
    pool = RunspacePool(1, 5, engine.factory)
    pool.open()
    yield pool
    if pool.state != "closed":
        pool.close()


def test_builder_stages_pipeline_in_order() -> None:
    ps = PowerShell()
    ps.add_command("Get-Process").add_parameter("Name", "pwsh").add_command("Select-Object").add_argument("Id")

    assert [c.name for c in ps.commands] == ["Get-Process", "Select-Object"]
    assert ps.commands[0].parameters == {"Name": "pwsh"}
    assert ps.commands[1].arguments == ["Id"]


def test_bare_parameter_is_a_switch() -> None:
    ps = PowerShell().add_command("Get-Module").add_parameter("ListAvailable")
    assert ps.commands[0].parameters == {"ListAvailable": True}


def test_parameter_requires_a_command() -> None:
    with pytest.raises(ValueError):
        PowerShell().add_parameter("Name", "x")
    with pytest.raises(ValueError):
        PowerShell().add_argument("x")


def test_invoke_returns_records_and_sends_snapshot(engine: FakeEngine, pool: RunspacePool) -> None:
    ps = PowerShell(pool)
    ps.add_command("Get-Process")
    records = ps.invoke()

    assert [r["ProcessName"] for r in records] == ["pwsh", "python"]
    assert ps.had_errors is False

    ps.clear()
    assert ps.commands == []
    assert engine.requests[0].commands[0].name == "Get-Process"


def test_invoke_reports_non_terminating_errors(engine: FakeEngine, pool: RunspacePool) -> None:
    ps = PowerShell(pool)
    ps.add_command("Import-Module").add_argument("Missing")

    assert ps.invoke() == []
    assert ps.had_errors is True
    assert "Missing" in ps.errors[0]


def test_broken_runspace_does_not_leave_stale_errors(engine: FakeEngine, pool: RunspacePool) -> None:
    ps = PowerShell(pool)
    ps.add_command("Import-Module").add_argument("Missing")
    ps.invoke()
    assert ps.had_errors is True

    def crash(command):
        raise RunspaceBrokenError("host exited")

    engine.handlers["Get-Process"] = crash
    ps.clear()
    ps.add_command("Get-Process")

    with pytest.raises(RunspaceBrokenError):
        ps.invoke()

    assert ps.had_errors is False
    assert ps.errors == []


def test_invoke_raises_terminating_engine_errors(pool: RunspacePool) -> None:
    ps = PowerShell(pool)
    ps.add_command("Get-Nothing")

    with pytest.raises(EngineError) as exc_info:
        ps.invoke()

    assert exc_info.value.error_type == "System.Management.Automation.CommandNotFoundException"
    assert ps.had_errors is True


def test_invoke_without_commands_is_rejected(engine: FakeEngine, pool: RunspacePool) -> None:
    with pytest.raises(EngineError):
        PowerShell(pool).invoke()
    assert engine.requests == []


def test_disposed_session_rejects_use(pool: RunspacePool) -> None:
    ps = PowerShell(pool)
    ps.dispose()

    assert ps.is_disposed
    with pytest.raises(DisposedError):
        ps.add_command("Get-Process")
    with pytest.raises(DisposedError):
        ps.invoke()
    with pytest.raises(DisposedError):
        ps.dispose()
