from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from healthcheck.models.severity import Severity


class MetricLine(BaseModel):
    """One rendered line of the health report."""

    model_config = ConfigDict(frozen=True)

    label: str = Field(..., description="Metric name shown on the left, e.g. 'CPU Usage'")
    value: str = Field(..., description="Formatted reading, or 'N/A' if unavailable")
    severity: Optional[Severity] = Field(
        None,
        description="Classification; None for metrics without a threshold policy",
    )
    detail: Optional[str] = Field(None, description="Extra context such as sizes or cores")


class HealthReport(BaseModel):
    """All metric lines of one invocation."""

    model_config = ConfigDict(frozen=True)

    generated_at: datetime = Field(..., description="UTC time the report was built")
    lines: List[MetricLine] = Field(..., description="CPU, memory, disk, uptime, load")
