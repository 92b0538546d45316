import time
from typing import NamedTuple, Optional

import psutil

from healthcheck.models.samples import CpuSample
from healthcheck.services.sources import (
    MetricUnavailable,
    first_available,
    read_text,
    run_command,
)


class CpuTimes(NamedTuple):
    """Cumulative CPU time per state, as exposed by the kernel."""

    user: float
    nice: float
    system: float
    idle: float
    iowait: float
    irq: float
    softirq: float
    steal: float

    @property
    def total(self) -> float:
        return sum(self)


def compute_utilization(first: CpuTimes, second: CpuTimes) -> float:
    """
    Busy share between two counter snapshots, in percent with one decimal.

    Returns 0.0 when no ticks elapsed between the reads.
    """
    delta_total = second.total - first.total
    delta_idle = second.idle - first.idle
    if delta_total <= 0:
        return 0.0

    utilization = (1 - delta_idle / delta_total) * 100
    return round(min(max(utilization, 0.0), 100.0), 1)


def parse_proc_stat(text: str) -> CpuTimes:
    """Parse the aggregate 'cpu' line of /proc/stat."""
    for line in text.splitlines():
        fields = line.split()
        if fields and fields[0] == "cpu":
            # Older kernels expose fewer than eight columns
            values = [int(value) for value in fields[1:9]]
            values += [0] * (8 - len(values))
            return CpuTimes(*values)

    raise MetricUnavailable("no aggregate cpu line in /proc/stat")


def parse_mpstat(text: str) -> float:
    """
    Extract 100 - %idle from the 'all' row of mpstat output.

    The column is located relative to the end of the header so that a
    12-hour clock (an extra AM/PM column) does not shift it.
    """
    offset: Optional[int] = None
    for line in text.splitlines():
        fields = line.split()
        if "%idle" in fields:
            offset = len(fields) - fields.index("%idle")
            continue
        if offset is not None and "all" in fields and len(fields) >= offset:
            idle = float(fields[-offset].replace(",", "."))
            return round(min(max(100.0 - idle, 0.0), 100.0), 1)

    raise MetricUnavailable("could not find the 'all' row in mpstat output")


def _read_psutil_times() -> CpuTimes:
    times = psutil.cpu_times()
    # Non-Linux platforms only report a subset of the states
    return CpuTimes(*(getattr(times, field, 0.0) for field in CpuTimes._fields))


def _read_proc_stat_times() -> CpuTimes:
    return parse_proc_stat(read_text("/proc/stat"))


def _sample_counters(reader, interval: float) -> float:
    first = reader()
    time.sleep(interval)
    second = reader()
    return compute_utilization(first, second)


def get_cpu_sample(interval: float = 0.2, timeout: float = 5.0) -> Optional[CpuSample]:
    """
    Measure CPU utilisation over `interval` seconds.

    Sources are tried in order: psutil counters, /proc/stat counters, and a
    one-shot mpstat reading. Returns None if none of them works.
    """

    def psutil_counters() -> CpuSample:
        return CpuSample(
            utilization_percent=_sample_counters(_read_psutil_times, interval),
            source="psutil",
        )

    def proc_stat_counters() -> CpuSample:
        return CpuSample(
            utilization_percent=_sample_counters(_read_proc_stat_times, interval),
            source="/proc/stat",
        )

    def mpstat() -> CpuSample:
        return CpuSample(
            utilization_percent=parse_mpstat(run_command(["mpstat"], timeout=timeout)),
            source="mpstat",
        )

    return first_available("cpu", [psutil_counters, proc_stat_counters, mpstat])
