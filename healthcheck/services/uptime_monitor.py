import time
from typing import List, Optional

import psutil

from healthcheck.models.samples import UptimeSample
from healthcheck.services.sources import (
    MetricUnavailable,
    first_available,
    read_text,
    run_command,
)


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def format_duration(seconds: int) -> str:
    """
    Render seconds as 'N days, N hours, N minutes'.

    Integer division only, so partial minutes are dropped. Leading zero units
    are omitted; minutes are always shown.
    """
    if seconds < 0:
        raise ValueError(f"negative duration: {seconds}")

    days, remainder = divmod(int(seconds), 86400)
    hours, remainder = divmod(remainder, 3600)
    minutes = remainder // 60

    parts: List[str] = []
    if days:
        parts.append(_plural(days, "day"))
    if days or hours:
        parts.append(_plural(hours, "hour"))
    parts.append(_plural(minutes, "minute"))
    return ", ".join(parts)


def parse_pretty_uptime(text: str) -> str:
    """Strip the leading 'up ' from `uptime -p` output."""
    rendered = text.strip()
    if rendered.startswith("up "):
        rendered = rendered[3:].strip()
    if not rendered:
        raise MetricUnavailable("empty output from uptime -p")
    return rendered


def parse_proc_uptime(text: str) -> int:
    """First field of /proc/uptime is seconds since boot (fractional)."""
    return int(float(text.split()[0]))


def _from_seconds(seconds: int, source: str) -> UptimeSample:
    return UptimeSample(rendered=format_duration(seconds), seconds=seconds, source=source)


def get_uptime_sample(timeout: float = 5.0) -> Optional[UptimeSample]:
    """Elapsed time since boot; prefers the platform's pretty rendering."""

    def uptime_pretty() -> UptimeSample:
        rendered = parse_pretty_uptime(run_command(["uptime", "-p"], timeout=timeout))
        return UptimeSample(rendered=rendered, source="uptime -p")

    def psutil_boot_time() -> UptimeSample:
        return _from_seconds(int(time.time() - psutil.boot_time()), "psutil")

    def proc_uptime() -> UptimeSample:
        return _from_seconds(parse_proc_uptime(read_text("/proc/uptime")), "/proc/uptime")

    return first_available("uptime", [uptime_pretty, psutil_boot_time, proc_uptime])
