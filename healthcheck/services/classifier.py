from typing import Optional

from healthcheck.config import Settings, Thresholds
from healthcheck.models.severity import Severity


def classify(value: Optional[float], warn: float, crit: float) -> Severity:
    """
    Map a reading onto a severity. Both thresholds are inclusive.

    None marks an unavailable reading and always yields UNKNOWN.
    """
    if value is None:
        return Severity.UNKNOWN
    if value >= crit:
        return Severity.CRITICAL
    if value >= warn:
        return Severity.WARNING
    return Severity.OK


def classify_with(value: Optional[float], thresholds: Thresholds) -> Severity:
    return classify(value, thresholds.warn, thresholds.crit)


def load_thresholds(cores: int, settings: Settings) -> Thresholds:
    """Load thresholds scale with the number of logical cores."""
    return Thresholds(
        warn=round(cores * settings.load_warn_per_core, 2),
        crit=round(cores * settings.load_crit_per_core, 2),
    )
