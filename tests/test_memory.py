import subprocess

import pytest

from healthcheck.services import memory_monitor
from healthcheck.services.memory_monitor import compute_memory, parse_free, parse_meminfo
from healthcheck.services.sources import MetricUnavailable

MEMINFO = """\
MemTotal:        8000000 kB
MemFree:          500000 kB
MemAvailable:    2000000 kB
Buffers:          100000 kB
Cached:          1200000 kB
"""

FREE_OUTPUT = """\
               total        used        free      shared  buff/cache   available
Mem:      8000000000  5000000000  1000000000   100000000  2000000000  2000000000
Swap:     2000000000           0  2000000000
"""


def test_meminfo_uses_mem_available():
    total, available = parse_meminfo(MEMINFO)

    assert total == 8000000 * 1024
    assert available == 2000000 * 1024

    _, percent = compute_memory(total, available)
    assert percent == 75.0


def test_meminfo_without_mem_available_approximates_it():
    text = (
        "MemTotal:        8000000 kB\n"
        "MemFree:        1000000 kB\n"
        "Buffers:         500000 kB\n"
        "Cached:          500000 kB\n"
    )
    total, available = parse_meminfo(text)

    assert available == 2000000 * 1024
    assert compute_memory(total, available)[1] == 75.0


def test_meminfo_without_total_is_unavailable():
    with pytest.raises(MetricUnavailable):
        parse_meminfo("MemFree: 1000 kB\n")


@pytest.mark.parametrize(
    "used, total",
    [(0, 1), (1, 1), (1, 3), (2, 3), (123456, 7654321), (7654321, 7654321), (5, 10**12)],
)
def test_used_percent_matches_ratio(used, total):
    used_bytes, percent = compute_memory(total, total - used)

    assert used_bytes == used
    assert percent == round(used / total * 100, 1)
    assert 0.0 <= percent <= 100.0


def test_available_above_total_is_clamped():
    assert compute_memory(100, 150) == (0, 0.0)


def test_zero_total_is_unavailable():
    with pytest.raises(MetricUnavailable):
        compute_memory(0, 0)


def test_parse_free_prefers_available_column():
    assert parse_free(FREE_OUTPUT) == (8000000000, 6000000000)


def test_parse_free_without_available_column():
    text = (
        "             total       used       free     shared    buffers     cached\n"
        "Mem:          1000        400        600          0         10         20\n"
    )
    assert parse_free(text) == (1000, 400)


def test_get_memory_sample_from_psutil(monkeypatch):
    class FakeMemory:
        total = 8000000 * 1024
        available = 2000000 * 1024

    monkeypatch.setattr(memory_monitor.psutil, "virtual_memory", lambda: FakeMemory())

    sample = memory_monitor.get_memory_sample()

    assert sample is not None
    assert sample.used_percent == 75.0
    assert sample.used_bytes == 6000000 * 1024
    assert sample.total_bytes == 8000000 * 1024
    assert sample.source == "psutil"


def test_get_memory_sample_falls_back_to_free(monkeypatch):
    def broken(*args, **kwargs):
        raise OSError("no memory info")

    def fake_run(args, **kwargs):
        assert args == ["free", "-b"]
        return subprocess.CompletedProcess(args, 0, stdout=FREE_OUTPUT, stderr="")

    monkeypatch.setattr(memory_monitor.psutil, "virtual_memory", broken)
    monkeypatch.setattr(memory_monitor, "read_text", broken)
    monkeypatch.setattr("healthcheck.services.sources.subprocess.run", fake_run)

    sample = memory_monitor.get_memory_sample()

    assert sample is not None
    assert sample.used_percent == 75.0
    assert sample.source == "free"


def test_get_memory_sample_unavailable(unavailable_sources):
    assert memory_monitor.get_memory_sample() is None
