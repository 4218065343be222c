import pytest
from pydantic import ValidationError

from psbridge.core.config import Config


def test_config_defaults_are_typed_models() -> None:
    config = Config.model_validate({})

    assert config.engine.executable is None
    assert config.engine.min_runspaces == 1
    assert config.engine.max_runspaces == 5
    assert config.engine.invoke_timeout is None
    assert config.logging is None


def test_config_forbids_unknown_fields() -> None:
    with pytest.raises(ValidationError):
        Config.model_validate({"unknown": 1})

    with pytest.raises(ValidationError):
        Config.model_validate({"engine": {"pool": 3}})


def test_pool_bounds_are_validated() -> None:
    with pytest.raises(ValidationError):
        Config.model_validate({"engine": {"min_runspaces": 0}})

    with pytest.raises(ValidationError):
        Config.model_validate({"engine": {"min_runspaces": 4, "max_runspaces": 2}})

    config = Config.model_validate({"engine": {"min_runspaces": 3, "max_runspaces": 3}})
    assert config.engine.max_runspaces == 3
