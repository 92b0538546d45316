import datetime as dt
import re
from typing import Callable, List, Optional

from healthcheck.config import Settings
from healthcheck.models.report import HealthReport, MetricLine
from healthcheck.models.samples import (
    CpuSample,
    DiskSample,
    LoadSample,
    MemorySample,
    Size,
    UptimeSample,
)
from healthcheck.models.severity import Severity
from healthcheck.services import (
    cpu_monitor,
    disk_monitor,
    load_monitor,
    memory_monitor,
    uptime_monitor,
)
from healthcheck.services.classifier import classify, classify_with, load_thresholds

NOT_AVAILABLE = "N/A"

_LABEL_WIDTH = 14
_VALUE_WIDTH = 24

_COLORS = {
    Severity.OK: "\033[92m",
    Severity.WARNING: "\033[93m",
    Severity.CRITICAL: "\033[91m",
    Severity.UNKNOWN: "\033[90m",
}
_RESET = "\033[0m"
_ANSI_PATTERN = re.compile(r"\033\[[0-9;]*m")

LEGEND = (
    "Legend: OK = below warning threshold | WARNING = at or above warning threshold | "
    "CRITICAL = at or above critical threshold | N/A = metric unavailable"
)

EXPLAIN_TEXT = """\
Health Parameters Explanation:

1. CPU Usage
   Share of CPU time spent on non-idle work, measured over a 200 ms window.
   Sustained high usage means processes are competing for the processor and
   response times grow. WARNING from 70%, CRITICAL from 85%: short spikes are
   normal, but at these levels there is little headroom left for bursts.

2. Memory Usage
   Physical memory in use, computed as total minus available memory.
   Available memory includes page cache and buffers the kernel can reclaim,
   so it reflects what new programs can actually get. WARNING from 75%,
   CRITICAL from 90%: close to the limit the system starts swapping or the
   out-of-memory killer terminates processes.

3. Disk Space Usage
   Used capacity of the filesystem mounted at /. A full root filesystem
   stops logging, package updates and anything that writes temporary files.
   WARNING from 80%, CRITICAL from 90%: leaves time to clean up before writes
   start failing.

4. System Uptime
   Time since the last boot. Very short uptimes can reveal unexpected
   reboots; very long ones can mean pending kernel updates were never
   applied. Uptime is informational and has no thresholds.

5. Load Average
   Average number of processes running or waiting for CPU (and, on Linux,
   uninterruptible I/O) over the last 1, 5 and 15 minutes. It is only
   meaningful relative to the number of logical cores. WARNING from
   0.7 x cores, CRITICAL from 1.5 x cores, judged on the 1-minute value:
   above the core count work queues up faster than it is served.
"""


def explain_text() -> str:
    """Static description of every metric. Samples nothing."""
    return EXPLAIN_TEXT


def format_bytes(num: int) -> str:
    """Binary units with one decimal, e.g. 1536 -> '1.5 KiB'."""
    value = float(num)
    for unit in ("B", "KiB", "MiB", "GiB"):
        if abs(value) < 1024:
            return f"{int(value)} B" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} TiB"


def _format_size(size: Size) -> str:
    return format_bytes(size) if isinstance(size, int) else size


def _cpu_line(sample: Optional[CpuSample], settings: Settings) -> MetricLine:
    if sample is None:
        return MetricLine(label="CPU Usage", value=NOT_AVAILABLE, severity=Severity.UNKNOWN)
    return MetricLine(
        label="CPU Usage",
        value=f"{sample.utilization_percent:.1f}%",
        severity=classify_with(sample.utilization_percent, settings.cpu_thresholds),
    )


def _memory_line(sample: Optional[MemorySample], settings: Settings) -> MetricLine:
    if sample is None:
        return MetricLine(label="Memory Usage", value=NOT_AVAILABLE, severity=Severity.UNKNOWN)
    return MetricLine(
        label="Memory Usage",
        value=f"{sample.used_percent:.1f}%",
        severity=classify_with(sample.used_percent, settings.memory_thresholds),
        detail=f"used {format_bytes(sample.used_bytes)} of {format_bytes(sample.total_bytes)}",
    )


def _disk_line(sample: Optional[DiskSample], settings: Settings) -> MetricLine:
    label = f"Disk Usage ({settings.disk_path})"
    if sample is None:
        return MetricLine(label=label, value=NOT_AVAILABLE, severity=Severity.UNKNOWN)
    return MetricLine(
        label=label,
        value=f"{sample.used_percent:.1f}%",
        severity=classify_with(sample.used_percent, settings.disk_thresholds),
        detail=(
            f"used {_format_size(sample.used_size)} of {_format_size(sample.total_size)}, "
            f"{_format_size(sample.available_size)} free"
        ),
    )


def _uptime_line(sample: Optional[UptimeSample]) -> MetricLine:
    # Uptime has no threshold policy, hence no severity
    return MetricLine(
        label="System Uptime",
        value=sample.rendered if sample is not None else NOT_AVAILABLE,
    )


def _load_line(sample: Optional[LoadSample], settings: Settings) -> MetricLine:
    if sample is None:
        return MetricLine(label="Load Average", value=NOT_AVAILABLE, severity=Severity.UNKNOWN)
    thresholds = load_thresholds(sample.cores, settings)
    return MetricLine(
        label="Load Average",
        value=f"{sample.load1:.2f}, {sample.load5:.2f}, {sample.load15:.2f}",
        severity=classify(sample.load1, thresholds.warn, thresholds.crit),
        detail=(
            f"{sample.cores} cores; warn {thresholds.warn:.2f}, crit {thresholds.crit:.2f}"
        ),
    )


def build_report(
    settings: Settings,
    now: Callable[[], dt.datetime] = lambda: dt.datetime.now(dt.timezone.utc),
) -> HealthReport:
    """
    Sample every metric once, in order, and classify the readings.

    A metric whose sources all fail becomes an N/A line; the other lines are
    unaffected.
    """
    timeout = settings.command_timeout
    lines: List[MetricLine] = [
        _cpu_line(
            cpu_monitor.get_cpu_sample(interval=settings.cpu_sample_interval, timeout=timeout),
            settings,
        ),
        _memory_line(memory_monitor.get_memory_sample(timeout=timeout), settings),
        _disk_line(
            disk_monitor.get_disk_sample(path=settings.disk_path, timeout=timeout),
            settings,
        ),
        _uptime_line(uptime_monitor.get_uptime_sample(timeout=timeout)),
        _load_line(load_monitor.get_load_sample(timeout=timeout), settings),
    ]
    return HealthReport(generated_at=now(), lines=lines)


def _severity_tag(severity: Severity, color: bool) -> str:
    tag = f"[{severity.label}]"
    if color:
        return f"{_COLORS[severity]}{tag}{_RESET}"
    return tag


def strip_ansi(text: str) -> str:
    return _ANSI_PATTERN.sub("", text)


def render_report(report: HealthReport, color: bool = False) -> str:
    """
    Format a report as aligned text.

    `color` only wraps the severity tags in ANSI codes; the text is otherwise
    identical to the plain rendering.
    """
    generated = report.generated_at.astimezone(dt.timezone.utc)
    header = f"System Health Report - {generated:%Y-%m-%d %H:%M:%S} UTC"
    out = [header, "=" * len(header)]

    for line in report.lines:
        text = f"{line.label:<{_LABEL_WIDTH}} : {line.value:<{_VALUE_WIDTH}}"
        if line.severity is not None:
            text += f" {_severity_tag(line.severity, color)}"
        if line.detail and line.value != NOT_AVAILABLE:
            text += f"  ({line.detail})"
        out.append(text.rstrip())

    out.append("-" * len(header))
    out.append(LEGEND)
    return "\n".join(out) + "\n"
