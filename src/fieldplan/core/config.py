# src/fieldplan/core/config.py
"""
Configuration schema and loading for fieldplan.

Uses Pydantic for validation and PyYAML for loading settings files.
Settings are frozen (immutable) after construction.

Example YAML:
    execution:
      failure_policy: drop
      log_plans: true
    logging:
      level: DEBUG
      json_output: true
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from fieldplan.contracts.enums import FailurePolicy

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


class ExecutionSettings(BaseModel):
    """Batch executor behaviour.

    failure_policy decides what happens to a record whose loader or compute
    body returned the FAILED sentinel:
    - keep: the field stays unassigned, reading it raises NotLoaded
    - drop: the record leaves the batch before later fields run
    """

    model_config = {"frozen": True, "extra": "forbid"}

    failure_policy: FailurePolicy = Field(
        default=FailurePolicy.KEEP,
        description="What to do with records a collaborator marked as FAILED",
    )
    log_plans: bool = Field(
        default=False,
        description="Log every built plan at INFO instead of DEBUG",
    )


class LoggingSettings(BaseModel):
    """Structured logging output."""

    model_config = {"frozen": True, "extra": "forbid"}

    level: str = Field(default="INFO", description="Root log level")
    json_output: bool = Field(default=False, description="Emit JSON lines instead of console output")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Normalize and validate the log level name."""
        level = v.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"level must be one of {sorted(_LOG_LEVELS)}, got {v!r}")
        return level


class FieldplanSettings(BaseModel):
    """Top-level settings."""

    model_config = {"frozen": True, "extra": "forbid"}

    execution: ExecutionSettings = Field(default_factory=ExecutionSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


def load_settings(config_path: Path) -> FieldplanSettings:
    """Load settings from a YAML file.

    An empty file yields the defaults.

    Raises:
        FileNotFoundError: If the file does not exist
        yaml.YAMLError: If the file is not valid YAML
        pydantic.ValidationError: If the content does not match the schema
    """
    with config_path.open(encoding="utf-8") as f:
        raw: Any = yaml.safe_load(f)
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValueError(f"Settings file {config_path} must contain a mapping, got {type(raw).__name__}")
    return FieldplanSettings.model_validate(raw)
