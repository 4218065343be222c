from __future__ import annotations

import json

import pytest
import typer
from typer.testing import CliRunner

from psbridge import __version__
from psbridge.cli.cmd.common import parse_parameters
from psbridge.cli.main import app
from psbridge.environment import Environment
from psbridge.runspace import RunspaceManager
from tests.helpers import FakeEngine

runner = CliRunner()


@pytest.fixture(autouse=True)
def fake_environment(monkeypatch: pytest.MonkeyPatch, engine: FakeEngine) -> list[Environment]:
    created: list[Environment] = []

    def from_config(cls, config, factory=None):  # type: ignore[no-untyped-def]
        env = Environment(RunspaceManager(engine.factory))
        created.append(env)
        return env

    monkeypatch.setattr("psbridge.cli.main.bootstrap_logging", lambda **_kw: None)
    monkeypatch.setattr(Environment, "from_config", classmethod(from_config))
    return created


def test_version() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_processes_prints_process_names(fake_environment: list[Environment]) -> None:
    result = runner.invoke(app, ["processes"])

    assert result.exit_code == 0
    assert result.stdout.splitlines() == ["pwsh", "python"]
    assert fake_environment[0].closed


def test_invoke_stages_parameters_and_prints_json(engine: FakeEngine) -> None:
    result = runner.invoke(app, ["invoke", "Get_Process", "-p", "Name=python", "--json"])

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert [r["properties"]["ProcessName"] for r in payload] == ["python"]
    assert engine.commands("Get-Process")[0].parameters == {"Name": "python"}


def test_invoke_imports_modules_first(engine: FakeEngine) -> None:
    result = runner.invoke(app, ["invoke", "Get-Process", "--import", "Microsoft.PowerShell.Utility"])

    assert result.exit_code == 0
    assert engine.command_names()[0] == "Import-Module"
    assert engine.command_names()[-1] == "Get-Process"


def test_invoke_unknown_command_exits_nonzero(engine: FakeEngine, fake_environment: list[Environment]) -> None:
    result = runner.invoke(app, ["invoke", "Get_Nothing"])

    assert result.exit_code == 1
    assert "Get-Nothing" in result.output
    assert "Get-Nothing" not in engine.command_names()
    assert fake_environment[0].closed


def test_install_reports_failing_module(engine: FakeEngine) -> None:
    engine.failing_installs.add("Broken")

    result = runner.invoke(app, ["install", "Good", "Broken", "Never"])

    assert result.exit_code == 1
    assert "Broken" in result.output
    assert [c.parameters["Name"] for c in engine.commands("Install-Module")] == ["Good", "Broken"]


def test_install_skips_available_modules(engine: FakeEngine) -> None:
    result = runner.invoke(app, ["install", "--skip-installed", "Microsoft.PowerShell.Utility", "Pester"])

    assert result.exit_code == 0
    assert "Already installed: Microsoft.PowerShell.Utility" in result.stdout
    assert "Installed: Pester" in result.stdout
    assert [c.parameters["Name"] for c in engine.commands("Install-Module")] == ["Pester"]


def test_config_show_prints_resolved_config() -> None:
    result = runner.invoke(app, ["config", "--show"])

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["config"]["engine"]["max_runspaces"] == 5


def test_parse_parameters() -> None:
    assert parse_parameters(["Name=pwsh", "Id=42", "Force", "Tags=[\"a\"]", "Path=C:\\temp"]) == {
        "Name": "pwsh",
        "Id": 42,
        "Force": True,
        "Tags": ["a"],
        "Path": "C:\\temp",
    }
    with pytest.raises(typer.BadParameter):
        parse_parameters(["=x"])
