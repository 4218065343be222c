"""Configuration schema — Pydantic models for psbridge config files."""

from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class EngineConfig(BaseModel):
    """PowerShell host and runspace pool settings."""
    executable: Optional[str] = None
    arguments: List[str] = Field(default_factory=list)
    min_runspaces: int = Field(1, ge=1)
    max_runspaces: int = Field(5, ge=1)
    start_timeout: float = Field(30.0, gt=0)
    invoke_timeout: Optional[float] = Field(None, gt=0)
    environment: Dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def _check_bounds(self) -> "EngineConfig":
        if self.max_runspaces < self.min_runspaces:
            raise ValueError(
                f"max_runspaces ({self.max_runspaces}) must be >= min_runspaces ({self.min_runspaces})"
            )
        return self


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: Optional[Literal["DEBUG", "INFO", "WARN", "ERROR", "debug", "info", "warn", "error"]] = None
    format: Optional[Literal["kv", "json", "pretty"]] = None
    console: Optional[bool] = None
    file: Optional[bool] = None
    dev_file: Optional[bool] = None

    model_config = ConfigDict(extra="forbid")


class Config(BaseModel):
    """Main configuration model."""
    engine: EngineConfig = Field(default_factory=EngineConfig)
    logging: Optional[LoggingConfig] = None
    log_level: Optional[str] = None

    model_config = ConfigDict(extra="forbid")
