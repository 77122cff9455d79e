"""Per-process collector."""

import logging
import os
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, Optional

import psutil

logger = logging.getLogger(__name__)

CLOCK_TICKS = os.sysconf("SC_CLK_TCK")

UNKNOWN_CMDLINE = "?"


@dataclass(frozen=True)
class ProcessSample:
    """One row of the ``proc`` stream."""

    time_ms: Optional[int]
    pid: int
    owner: int
    open_fd_count: int
    num_threads: int
    starttime: int
    utime: int
    stime: int
    cmdline: str


def sample_processes(
    time_ms: Optional[int],
    process_iter: Callable[[], Iterable[psutil.Process]] = psutil.process_iter,
) -> Iterator[ProcessSample]:
    """
    Yield one sample per visible process.

    Processes are enumerated fresh on every call and yielded in the order
    psutil lists them. A process that exits mid-read is skipped.

    Args:
        time_ms: Timestamp shared by every sample of this tick
        process_iter: Source of processes (psutil.process_iter by default)
    """
    try:
        boot_time = psutil.boot_time()
    except (OSError, psutil.Error) as e:
        logger.error(f"Error reading boot time: {e}")
        return

    for proc in process_iter():
        sample = sample_process(time_ms, proc, boot_time)
        if sample is not None:
            yield sample


def sample_process(
    time_ms: Optional[int], proc: psutil.Process, boot_time: float
) -> Optional[ProcessSample]:
    """Read the counters of a single process, or None if it is gone."""
    try:
        with proc.oneshot():
            owner = proc.uids().effective
            num_threads = proc.num_threads()
            cpu = proc.cpu_times()
            created = proc.create_time()
    except (psutil.NoSuchProcess, psutil.AccessDenied) as e:
        # Process disappeared or we can't read its stat
        logger.debug(f"Skipping process {proc.pid}: {e}")
        return None

    return ProcessSample(
        time_ms=time_ms,
        pid=proc.pid,
        owner=owner,
        open_fd_count=_open_fd_count(proc),
        num_threads=num_threads,
        starttime=_ticks(created - boot_time),
        utime=_ticks(cpu.user),
        stime=_ticks(cpu.system),
        cmdline=_cmdline(proc),
    )


def _open_fd_count(proc: psutil.Process) -> int:
    try:
        return proc.num_fds()
    except psutil.Error:
        return -1


def _cmdline(proc: psutil.Process) -> str:
    try:
        items = proc.cmdline()
    except psutil.Error:
        return UNKNOWN_CMDLINE

    if not items:
        return UNKNOWN_CMDLINE

    return " ".join(items)


def _ticks(seconds: float) -> int:
    """Convert seconds back to kernel clock ticks."""
    return round(seconds * CLOCK_TICKS)
