from collections.abc import Iterator
from pathlib import Path

import pytest

from psbridge.core.config import ConfigManager
from psbridge.environment import Environment
from psbridge.runspace import RunspaceManager
from tests.helpers import FakeEngine


@pytest.fixture(autouse=True)
def config_context(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    monkeypatch.setenv("PSBRIDGE_TEST_CONFIG_DIR", str(config_dir))
    monkeypatch.delenv("PSBRIDGE_CONFIG_CONTENT", raising=False)
    token = ConfigManager.provide(ConfigManager())
    try:
        yield
    finally:
        ConfigManager.restore(token)


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def env(engine: FakeEngine) -> Iterator[Environment]:
    environment = Environment(RunspaceManager(engine.factory))
    try:
        yield environment
    finally:
        if not environment.closed:
            environment.close()
