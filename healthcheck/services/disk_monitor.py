from typing import List, Optional

import psutil

from healthcheck.models.samples import DiskSample
from healthcheck.services.sources import MetricUnavailable, first_available, run_command


def _parse_percent(raw: str) -> float:
    percent = float(raw.strip().rstrip("%"))
    if not 0.0 <= percent <= 100.0:
        raise MetricUnavailable(f"disk usage percent out of range: {raw!r}")
    return percent


def _data_lines(output: str) -> List[str]:
    # First line of df output is the column header
    lines = [line for line in output.splitlines() if line.strip()]
    if len(lines) < 2:
        raise MetricUnavailable("df returned no data row")
    return lines[1:]


def parse_df_extended(line: str, path: str = "/") -> DiskSample:
    """
    Parse one data row of `df --output=pcent,size,used,avail,target`.

    Example: "82% 100G 80G 18G /".
    """
    fields = line.split()
    if len(fields) < 4:
        raise MetricUnavailable(f"unexpected df row: {line!r}")

    return DiskSample(
        path=path,
        used_percent=_parse_percent(fields[0]),
        total_size=fields[1],
        used_size=fields[2],
        available_size=fields[3],
        source="df --output",
    )


def parse_df_default(line: str, path: str = "/") -> DiskSample:
    """
    Parse one data row of the POSIX `df -P` format.

    Columns are taken positionally: Filesystem Size Used Avail Use% Mounted.
    """
    fields = line.split()
    if len(fields) < 5:
        raise MetricUnavailable(f"unexpected df row: {line!r}")

    return DiskSample(
        path=path,
        used_percent=_parse_percent(fields[4]),
        total_size=fields[1],
        used_size=fields[2],
        available_size=fields[3],
        source="df",
    )


def get_disk_sample(path: str = "/", timeout: float = 5.0) -> Optional[DiskSample]:
    """
    Report capacity usage for the filesystem hosting `path`.

    Tries psutil first, then GNU df with --output, then plain `df -P` for
    platforms whose df has no --output flag.
    """

    def psutil_disk_usage() -> DiskSample:
        usage = psutil.disk_usage(path)
        return DiskSample(
            path=path,
            used_percent=round(float(usage.percent), 1),
            total_size=int(usage.total),
            used_size=int(usage.used),
            available_size=int(usage.free),
            source="psutil",
        )

    def df_extended() -> DiskSample:
        output = run_command(
            ["df", "-h", "--output=pcent,size,used,avail,target", path],
            timeout=timeout,
        )
        return parse_df_extended(_data_lines(output)[-1], path)

    def df_default() -> DiskSample:
        output = run_command(["df", "-hP", path], timeout=timeout)
        return parse_df_default(_data_lines(output)[-1], path)

    return first_available("disk", [psutil_disk_usage, df_extended, df_default])
