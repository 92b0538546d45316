import logging
import os
import re
from typing import Optional, Tuple

import psutil

from healthcheck.models.samples import LoadSample
from healthcheck.services.sources import (
    MetricUnavailable,
    first_available,
    read_text,
    run_command,
)

logger = logging.getLogger(__name__)

# macOS prints "load averages:", Linux "load average:"
_LOAD_AVERAGE_PATTERN = re.compile(r"load averages?:\s*(.+)$", re.IGNORECASE)
_LOAD_SEPARATOR_PATTERN = re.compile(r",\s+|\s+")

LoadTriple = Tuple[float, float, float]


def parse_proc_loadavg(text: str) -> LoadTriple:
    fields = text.split()
    return float(fields[0]), float(fields[1]), float(fields[2])


def parse_uptime_load(text: str) -> LoadTriple:
    """Extract the three load figures after 'load average:' in `uptime` output."""
    match = _LOAD_AVERAGE_PATTERN.search(text.strip())
    if not match:
        raise MetricUnavailable("no 'load average:' segment in uptime output")

    segment = match.group(1).strip()
    # Separators are ", " or whitespace; a comma without a following space is
    # a decimal comma ("0,52, 0,40, 0,33")
    parts = _LOAD_SEPARATOR_PATTERN.split(segment)
    values = [float(part.strip(",").replace(",", ".")) for part in parts if part.strip(",")]
    if len(values) < 3:
        raise MetricUnavailable(f"expected three load averages, got {segment!r}")
    return values[0], values[1], values[2]


def get_core_count() -> int:
    """Online logical processors; falls back to 1 so load can still be judged."""
    for probe in (lambda: psutil.cpu_count(logical=True), os.cpu_count):
        try:
            count = probe()
        except (OSError, psutil.Error) as exc:
            logger.debug("core count probe failed: %s", exc)
            continue
        if count and count >= 1:
            return int(count)

    logger.info("core count unavailable, assuming 1")
    return 1


def get_load_sample(timeout: float = 5.0) -> Optional[LoadSample]:
    """
    Read the 1/5/15-minute load averages.

    The core count is probed separately and never makes the sample
    unavailable on its own.
    """
    cores = get_core_count()

    def _sample(loads: LoadTriple, source: str) -> LoadSample:
        load1, load5, load15 = loads
        return LoadSample(load1=load1, load5=load5, load15=load15, cores=cores, source=source)

    def getloadavg() -> LoadSample:
        if not hasattr(os, "getloadavg"):
            raise MetricUnavailable("os.getloadavg is not available on this platform")
        return _sample(os.getloadavg(), "os.getloadavg")

    def proc_loadavg() -> LoadSample:
        return _sample(parse_proc_loadavg(read_text("/proc/loadavg")), "/proc/loadavg")

    def uptime() -> LoadSample:
        return _sample(parse_uptime_load(run_command(["uptime"], timeout=timeout)), "uptime")

    return first_available("load", [getloadavg, proc_loadavg, uptime])
