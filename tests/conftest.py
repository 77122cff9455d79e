"""Shared fixtures and psutil fakes."""
from __future__ import annotations

import contextlib
import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Iterator, List, Optional, Union

import psutil
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT / "src") not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT / "src"))

from statsdump.collectors import processes


class FakeProcess:
    """Stands in for psutil.Process with fixed counters."""

    def __init__(
        self,
        pid: int,
        uid: int = 1000,
        euid: Optional[int] = None,
        threads: int = 1,
        user: float = 1.25,
        system: float = 0.5,
        created: float = 1010.5,
        fds: Union[int, Exception] = 4,
        cmdline: Optional[Union[List[str], Exception]] = None,
        gone: bool = False,
    ) -> None:
        self.pid = pid
        self._uid = uid
        self._euid = uid if euid is None else euid
        self._threads = threads
        self._user = user
        self._system = system
        self._created = created
        self._fds = fds
        self._cmdline = ["/usr/bin/python3", "-m", "http.server"] if cmdline is None else cmdline
        self._gone = gone

    def oneshot(self):
        return contextlib.nullcontext()

    def uids(self) -> SimpleNamespace:
        if self._gone:
            raise psutil.NoSuchProcess(self.pid)
        return SimpleNamespace(real=self._uid, effective=self._euid, saved=self._euid)

    def num_threads(self) -> int:
        return self._threads

    def cpu_times(self) -> SimpleNamespace:
        return SimpleNamespace(user=self._user, system=self._system)

    def create_time(self) -> float:
        return self._created

    def num_fds(self) -> int:
        if isinstance(self._fds, Exception):
            raise self._fds
        return self._fds

    def cmdline(self) -> List[str]:
        if isinstance(self._cmdline, Exception):
            raise self._cmdline
        return self._cmdline


class BrokenStream:
    """Text stream whose reader has gone away."""

    def write(self, data: str) -> int:
        raise BrokenPipeError(32, "Broken pipe")

    def flush(self) -> None:
        raise BrokenPipeError(32, "Broken pipe")


@pytest.fixture(autouse=True)
def fixed_clock_ticks(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(processes, "CLOCK_TICKS", 100)
    monkeypatch.setattr(psutil, "boot_time", lambda: 1000.0)


@pytest.fixture()
def fake_processes() -> List[FakeProcess]:
    return [
        FakeProcess(1, uid=0, threads=1, cmdline=["/sbin/init", "splash"]),
        FakeProcess(42, threads=8),
    ]


def iter_of(procs: List[FakeProcess]):
    def process_iter() -> Iterator[FakeProcess]:
        return iter(procs)

    return process_iter
