import logging
import os
from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Thresholds(BaseModel):
    """Warning/critical boundaries for a single metric (both inclusive)."""

    model_config = ConfigDict(frozen=True)

    warn: float = Field(..., ge=0, description="Value at which a metric becomes WARNING")
    crit: float = Field(..., ge=0, description="Value at which a metric becomes CRITICAL")

    @model_validator(mode="after")
    def _warn_not_above_crit(self) -> "Thresholds":
        if self.warn > self.crit:
            raise ValueError(f"warn ({self.warn}) must not exceed crit ({self.crit})")
        return self


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Fixed threshold policy
    cpu_thresholds: Thresholds = Field(
        default=Thresholds(warn=70.0, crit=85.0),
        description="CPU utilisation thresholds in percent",
    )
    memory_thresholds: Thresholds = Field(
        default=Thresholds(warn=75.0, crit=90.0),
        description="Memory usage thresholds in percent",
    )
    disk_thresholds: Thresholds = Field(
        default=Thresholds(warn=80.0, crit=90.0),
        description="Root filesystem usage thresholds in percent",
    )
    load_warn_per_core: float = Field(
        default=0.7,
        gt=0,
        description="Load warning threshold as a multiple of the logical core count",
    )
    load_crit_per_core: float = Field(
        default=1.5,
        gt=0,
        description="Load critical threshold as a multiple of the logical core count",
    )

    # Sampling
    cpu_sample_interval: float = Field(
        default=0.2,
        ge=0,
        description="Seconds between the two CPU counter reads",
    )
    disk_path: str = Field(
        default="/",
        description="Path whose filesystem is reported in the disk line",
    )
    command_timeout: float = Field(
        default=5.0,
        gt=0,
        description="Timeout in seconds for fallback utilities such as df or mpstat",
    )

    # Presentation / diagnostics only, never the report content
    no_color: bool = Field(
        default=False,
        description="Disable ANSI colours even when stdout is a terminal (NO_COLOR)",
    )
    log_level: str = Field(
        default="WARNING",
        description="Diagnostic log level for stderr, e.g. DEBUG or INFO",
    )

    @model_validator(mode="after")
    def _load_multipliers_ordered(self) -> "Settings":
        if self.load_warn_per_core > self.load_crit_per_core:
            raise ValueError("load_warn_per_core must not exceed load_crit_per_core")
        return self

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        # Unknown names fall back to the default level
        level = value.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            return "WARNING"
        return level

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            no_color=bool(os.getenv("NO_COLOR")),
            log_level=os.getenv("HEALTHCHECK_LOG_LEVEL", "WARNING"),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
