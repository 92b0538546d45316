import subprocess

from healthcheck.services import cpu_monitor
from healthcheck.services.cpu_monitor import (
    CpuTimes,
    compute_utilization,
    parse_mpstat,
    parse_proc_stat,
)

MPSTAT_OUTPUT = """\
Linux 6.1.0-18-amd64 (nuc) \t10/16/2026 \t_x86_64_\t(4 CPU)

12:00:01 PM  CPU    %usr   %nice    %sys %iowait    %irq   %soft  %steal  %guest  %gnice   %idle
12:00:01 PM  all    2.50    0.00    1.00    0.25    0.00    0.05    0.00    0.00    0.00   96.20
"""


def test_utilization_from_counter_deltas():
    first = CpuTimes(100, 0, 50, 200, 0, 0, 0, 0)
    second = CpuTimes(500, 0, 400, 450, 0, 0, 0, 0)

    # deltaTotal = 1000, deltaIdle = 250
    assert compute_utilization(first, second) == 75.0


def test_no_elapsed_ticks_yields_zero():
    times = CpuTimes(10, 0, 10, 80, 0, 0, 0, 0)
    assert compute_utilization(times, times) == 0.0


def test_utilization_is_rounded_to_one_decimal():
    first = CpuTimes(0, 0, 0, 0, 0, 0, 0, 0)
    second = CpuTimes(1, 0, 0, 2, 0, 0, 0, 0)
    assert compute_utilization(first, second) == 33.3


def test_parse_proc_stat_reads_aggregate_line():
    text = (
        "cpu  4705 356 584 3699176 23060 0 277 0 0 0\n"
        "cpu0 1393 280 234 1850000 11000 0 200 0 0 0\n"
        "intr 114930548 113199788 3 0 5 263 0 4 [...]\n"
    )
    times = parse_proc_stat(text)

    assert times == CpuTimes(4705, 356, 584, 3699176, 23060, 0, 277, 0)
    assert times.idle == 3699176


def test_parse_proc_stat_pads_short_lines():
    times = parse_proc_stat("cpu 10 20 30 40\n")
    assert times == CpuTimes(10, 20, 30, 40, 0, 0, 0, 0)


def test_parse_mpstat_uses_idle_column():
    assert parse_mpstat(MPSTAT_OUTPUT) == 3.8


def test_parse_mpstat_24h_clock():
    text = (
        "12:00:01     CPU    %usr   %nice    %sys %iowait    %irq   %soft  %steal  %guest  %gnice   %idle\n"
        "12:00:01     all   10.00    0.00    5.00    0.00    0.00    0.00    0.00    0.00    0.00   85.00\n"
    )
    assert parse_mpstat(text) == 15.0


def test_get_cpu_sample_reads_counters_twice(monkeypatch):
    reads = iter(
        [
            CpuTimes(100, 0, 50, 200, 0, 0, 0, 0),
            CpuTimes(500, 0, 400, 450, 0, 0, 0, 0),
        ]
    )
    sleeps = []

    monkeypatch.setattr(cpu_monitor, "_read_psutil_times", lambda: next(reads))
    monkeypatch.setattr(cpu_monitor.time, "sleep", sleeps.append)

    sample = cpu_monitor.get_cpu_sample(interval=0.2)

    assert sample is not None
    assert sample.utilization_percent == 75.0
    assert sample.source == "psutil"
    assert sleeps == [0.2]


def test_get_cpu_sample_falls_back_to_proc_stat(monkeypatch, no_sleep):
    def broken():
        raise OSError("cpu_times not supported")

    stats = iter(["cpu 0 0 0 0 0 0 0 0\n", "cpu 60 0 20 20 0 0 0 0\n"])

    monkeypatch.setattr(cpu_monitor, "_read_psutil_times", broken)
    monkeypatch.setattr(cpu_monitor, "read_text", lambda path: next(stats))

    sample = cpu_monitor.get_cpu_sample()

    assert sample is not None
    assert sample.utilization_percent == 80.0
    assert sample.source == "/proc/stat"


def test_get_cpu_sample_falls_back_to_mpstat(monkeypatch, no_sleep):
    def broken(*args, **kwargs):
        raise OSError("unreadable")

    def fake_run(args, **kwargs):
        assert args == ["mpstat"]
        return subprocess.CompletedProcess(args, 0, stdout=MPSTAT_OUTPUT, stderr="")

    monkeypatch.setattr(cpu_monitor, "_read_psutil_times", broken)
    monkeypatch.setattr(cpu_monitor, "read_text", broken)
    monkeypatch.setattr("healthcheck.services.sources.subprocess.run", fake_run)

    sample = cpu_monitor.get_cpu_sample()

    assert sample is not None
    assert sample.utilization_percent == 3.8
    assert sample.source == "mpstat"


def test_get_cpu_sample_unavailable(unavailable_sources):
    assert cpu_monitor.get_cpu_sample() is None
