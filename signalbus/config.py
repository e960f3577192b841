"""Bus settings, loaded from the environment."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

ENV_PREFIX = "SIGNALBUS_"
VALID_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class BusSettings(BaseModel):
    """How a bus dispatches handlers and how the package logs."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    executor: Literal["inline", "thread"] = "inline"
    max_workers: int = Field(default=4, ge=1, le=256)
    validate_signatures: bool = True
    log_level: str = "INFO"
    structured_logs: bool = False

    @field_validator("executor", mode="before")
    @classmethod
    def _normalize_executor(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _validate_log_level(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("Expected a string value.")
        normalized = value.strip().upper()
        if normalized not in VALID_LOG_LEVELS:
            raise ValueError(
                f"log_level must be one of {', '.join(sorted(VALID_LOG_LEVELS))}"
            )
        return normalized

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> BusSettings:
        """Build settings from ``SIGNALBUS_*`` variables; unset ones keep defaults."""
        env = os.environ if environ is None else environ
        values: dict[str, str] = {}
        for field_name in cls.model_fields:
            raw = env.get(ENV_PREFIX + field_name.upper())
            if raw is not None and raw.strip():
                values[field_name] = raw
        return cls.model_validate(values)
