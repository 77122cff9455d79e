"""System memory and load-average collector."""

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import List, Optional, Tuple

import psutil

from .clock import timestamp_ms

logger = logging.getLogger(__name__)

DEFAULT_ID = "localhost"

MEMINFO_PATH = "/proc/meminfo"


@dataclass(frozen=True)
class MemoryCounters:
    """Memory totals in kilobytes."""

    total: int
    free: int
    buffers: int
    cached: int


@dataclass(frozen=True)
class LoadAverage:
    one: float
    five: float
    fifteen: float


@dataclass(frozen=True)
class SystemSample:
    """One row of the ``sys`` stream."""

    id: str
    time_ms: Optional[int] = None
    mem_total: Optional[int] = None
    mem_free: Optional[int] = None
    mem_buffers: Optional[int] = None
    mem_cached: Optional[int] = None
    load_avg_1: Optional[float] = None
    load_avg_5: Optional[float] = None
    load_avg_15: Optional[float] = None


def read_memory(meminfo_path: Optional[str] = None) -> Tuple[Optional[MemoryCounters], List[str]]:
    """
    Read host memory counters.

    Returns the counters (or None) and the diagnostics produced while reading.
    """
    try:
        mem = psutil.virtual_memory()
        counters = MemoryCounters(
            total=mem.total // 1024,
            free=mem.free // 1024,
            buffers=mem.buffers // 1024,
            cached=_page_cache_kb(meminfo_path or MEMINFO_PATH, mem.cached),
        )
    except (OSError, ValueError, IndexError, AttributeError, psutil.Error) as e:
        return None, [f"Error loading meminfo: {e}"]

    return counters, []


def _page_cache_kb(meminfo_path: str, psutil_cached: int) -> int:
    """
    The plain ``Cached:`` figure from meminfo, in kB.

    psutil folds SReclaimable into ``cached``; its value is only used
    where meminfo has no Cached line.
    """
    if Path(meminfo_path).exists():
        with open(meminfo_path) as f:
            for line in f:
                if line.startswith("Cached:"):
                    return int(line.split()[1])

    return psutil_cached // 1024


def read_load_average() -> Tuple[Optional[LoadAverage], List[str]]:
    """Read the 1, 5 and 15 minute load averages."""
    try:
        one, five, fifteen = psutil.getloadavg()
    except (OSError, psutil.Error) as e:
        return None, [f"Error loading load avg: {e}"]

    return LoadAverage(one=one, five=five, fifteen=fifteen), []


def sample_system(sample_id: str = DEFAULT_ID) -> SystemSample:
    """
    Collect one system sample.

    Never raises: a group that cannot be read is left empty and the
    failure is logged.
    """
    memory, mem_errors = read_memory()
    load, load_errors = read_load_average()

    for message in mem_errors + load_errors:
        logger.warning(message)

    sample = SystemSample(id=sample_id, time_ms=timestamp_ms())

    if memory is not None:
        sample = replace(
            sample,
            mem_total=memory.total,
            mem_free=memory.free,
            mem_buffers=memory.buffers,
            mem_cached=memory.cached,
        )
    if load is not None:
        sample = replace(
            sample,
            load_avg_1=load.one,
            load_avg_5=load.five,
            load_avg_15=load.fifteen,
        )

    return sample
