from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

# df reports human-readable sizes ("100G"), psutil reports bytes
Size = Union[int, str]


class CpuSample(BaseModel):
    """CPU utilisation derived from two time-spaced counter reads."""

    model_config = ConfigDict(frozen=True)

    utilization_percent: float = Field(
        ...,
        ge=0,
        le=100,
        description="Share of non-idle CPU time in percent, one decimal",
    )
    source: str = Field(..., description="Name of the source that produced the sample")


class MemorySample(BaseModel):
    """Physical memory usage based on available (not just free) memory."""

    model_config = ConfigDict(frozen=True)

    used_percent: float = Field(..., ge=0, le=100, description="Used memory in percent")
    used_bytes: int = Field(..., ge=0, description="Total minus available memory in bytes")
    total_bytes: int = Field(..., gt=0, description="Physical memory in bytes")
    source: str = Field(..., description="Name of the source that produced the sample")

    @model_validator(mode="after")
    def _used_within_total(self) -> "MemorySample":
        if self.used_bytes > self.total_bytes:
            raise ValueError("used_bytes must not exceed total_bytes")
        return self


class DiskSample(BaseModel):
    """Capacity usage of the filesystem backing a path."""

    model_config = ConfigDict(frozen=True)

    path: str = Field("/", description="Path whose filesystem was queried")
    used_percent: float = Field(..., ge=0, le=100, description="Used capacity in percent")
    total_size: Size = Field(..., description="Filesystem size (bytes or df string)")
    used_size: Size = Field(..., description="Used capacity (bytes or df string)")
    available_size: Size = Field(..., description="Capacity available to unprivileged users")
    source: str = Field(..., description="Name of the source that produced the sample")


class UptimeSample(BaseModel):
    """Elapsed time since boot."""

    model_config = ConfigDict(frozen=True)

    rendered: str = Field(..., description="Human-readable duration, e.g. '2 days, 3 hours'")
    seconds: Optional[int] = Field(
        None,
        ge=0,
        description="Raw seconds since boot, when the source exposes them",
    )
    source: str = Field(..., description="Name of the source that produced the sample")


class LoadSample(BaseModel):
    """1/5/15-minute load averages plus the core count used for thresholds."""

    model_config = ConfigDict(frozen=True)

    load1: float = Field(..., ge=0, description="1-minute load average")
    load5: float = Field(..., ge=0, description="5-minute load average")
    load15: float = Field(..., ge=0, description="15-minute load average")
    cores: int = Field(..., ge=1, description="Online logical processors")
    source: str = Field(..., description="Name of the source that produced the sample")
