import logging
import subprocess
from pathlib import Path
from typing import Callable, Optional, Sequence, TypeVar

import psutil

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Errors a source may leak while reading or parsing; all mean "try the next one"
_SOURCE_ERRORS = (RuntimeError, OSError, ValueError, IndexError, psutil.Error)


class MetricUnavailable(RuntimeError):
    """A single source could not produce a sample for its metric."""


def run_command(args: Sequence[str], timeout: float = 5.0) -> str:
    """
    Run an external utility and return its stdout.

    Raises MetricUnavailable if the binary is missing, exits non-zero or does
    not finish within `timeout` seconds.
    """
    try:
        result = subprocess.run(
            list(args),
            check=True,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except FileNotFoundError as exc:
        raise MetricUnavailable(f"{args[0]} binary not found on host system") from exc
    except subprocess.CalledProcessError as exc:
        raise MetricUnavailable(
            f"{' '.join(args)} failed with return code {exc.returncode}: {exc.stderr}"
        ) from exc
    except subprocess.TimeoutExpired as exc:
        raise MetricUnavailable(f"{' '.join(args)} timed out after {timeout}s") from exc

    return result.stdout


def read_text(path: str) -> str:
    """Read a kernel pseudo-file such as /proc/stat."""
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise MetricUnavailable(f"cannot read {path}: {exc}") from exc


def first_available(
    metric: str, sources: Sequence[Callable[[], T]]
) -> Optional[T]:
    """
    Try each source once, in order, and return the first sample produced.

    A failing source is logged and skipped. If every source fails, None is
    returned so the caller can render the metric as unavailable; the error is
    never propagated.
    """
    for source in sources:
        name = getattr(source, "__name__", repr(source))
        try:
            return source()
        except _SOURCE_ERRORS as exc:
            logger.debug("%s: source %s failed: %s", metric, name, exc)

    logger.info("%s unavailable: all %d sources failed", metric, len(sources))
    return None
