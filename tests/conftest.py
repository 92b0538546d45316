import psutil
import pytest

from healthcheck.config import get_settings
from healthcheck.services import (
    cpu_monitor,
    load_monitor,
    memory_monitor,
    uptime_monitor,
)
from healthcheck.services.sources import MetricUnavailable


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def no_sleep(monkeypatch):
    monkeypatch.setattr(cpu_monitor.time, "sleep", lambda seconds: None)


@pytest.fixture
def unavailable_sources(monkeypatch, no_sleep):
    """
    Simulate a host where every metric source fails: psutil raises, pseudo
    files cannot be read and no fallback utility is installed.
    """

    def fake_run(*args, **kwargs):
        raise FileNotFoundError("binary not installed")

    def fake_read_text(path):
        raise MetricUnavailable(f"cannot read {path}")

    def broken(*args, **kwargs):
        raise OSError("psutil probe failed")

    monkeypatch.setattr("healthcheck.services.sources.subprocess.run", fake_run)
    for module in (cpu_monitor, memory_monitor, uptime_monitor, load_monitor):
        monkeypatch.setattr(module, "read_text", fake_read_text)

    monkeypatch.setattr(psutil, "cpu_times", broken)
    monkeypatch.setattr(psutil, "virtual_memory", broken)
    monkeypatch.setattr(psutil, "disk_usage", broken)
    monkeypatch.setattr(psutil, "boot_time", broken)
    monkeypatch.setattr(psutil, "cpu_count", lambda logical=True: None)
    monkeypatch.setattr(load_monitor.os, "getloadavg", broken)
    monkeypatch.setattr(load_monitor.os, "cpu_count", lambda: None)

