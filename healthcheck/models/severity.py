from enum import Enum


class Severity(str, Enum):
    """Classification of a metric reading against its thresholds."""

    OK = "OK"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"
    UNKNOWN = "UNKNOWN"

    @property
    def label(self) -> str:
        # Unavailable metrics are shown as N/A in the report
        return "N/A" if self is Severity.UNKNOWN else self.value
