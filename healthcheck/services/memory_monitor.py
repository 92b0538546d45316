from typing import Dict, Optional, Tuple

import psutil

from healthcheck.models.samples import MemorySample
from healthcheck.services.sources import (
    MetricUnavailable,
    first_available,
    read_text,
    run_command,
)


def compute_memory(total: int, available: int) -> Tuple[int, float]:
    """
    Return (used_bytes, used_percent) for the given total/available figures.

    Used memory is total minus available, clamped to [0, total]; the percent
    is rounded to one decimal.
    """
    if total <= 0:
        raise MetricUnavailable(f"invalid total memory: {total}")

    used = min(max(total - available, 0), total)
    return used, round(used / total * 100, 1)


def parse_meminfo(text: str) -> Tuple[int, int]:
    """
    Parse /proc/meminfo into (total_bytes, available_bytes).

    Kernels older than 3.14 have no MemAvailable; it is then approximated as
    MemFree + Buffers + Cached.
    """
    values: Dict[str, int] = {}
    for line in text.splitlines():
        key, _, rest = line.partition(":")
        parts = rest.split()
        if parts:
            values[key.strip()] = int(parts[0]) * 1024

    if "MemTotal" not in values:
        raise MetricUnavailable("MemTotal missing from /proc/meminfo")

    if "MemAvailable" in values:
        available = values["MemAvailable"]
    else:
        available = (
            values.get("MemFree", 0) + values.get("Buffers", 0) + values.get("Cached", 0)
        )
    return values["MemTotal"], available


def parse_free(text: str) -> Tuple[int, int]:
    """
    Parse `free -b` into (total_bytes, used_bytes).

    When the header has an 'available' column, used is derived from it so the
    figure matches the other sources; otherwise the 'used' column is taken.
    """
    header: Optional[list] = None
    for line in text.splitlines():
        fields = line.split()
        if not fields:
            continue
        if header is None and fields[0] == "total":
            header = fields
            continue
        if fields[0] == "Mem:":
            total = int(fields[1])
            if header and "available" in header:
                available = int(fields[header.index("available") + 1])
                return total, total - available
            return total, int(fields[2])

    raise MetricUnavailable("no 'Mem:' row in free output")


def _sample(total: int, available: int, source: str) -> MemorySample:
    used, percent = compute_memory(total, available)
    return MemorySample(
        used_percent=percent,
        used_bytes=used,
        total_bytes=total,
        source=source,
    )


def get_memory_sample(timeout: float = 5.0) -> Optional[MemorySample]:
    """Read physical memory usage, or None if no source is usable."""

    def psutil_virtual_memory() -> MemorySample:
        memory = psutil.virtual_memory()
        return _sample(int(memory.total), int(memory.available), "psutil")

    def proc_meminfo() -> MemorySample:
        total, available = parse_meminfo(read_text("/proc/meminfo"))
        return _sample(total, available, "/proc/meminfo")

    def free() -> MemorySample:
        total, used = parse_free(run_command(["free", "-b"], timeout=timeout))
        return _sample(total, total - used, "free")

    return first_available("memory", [psutil_virtual_memory, proc_meminfo, free])
