"""Tests for the system memory/load collector."""
from __future__ import annotations

import logging
from pathlib import Path
from types import SimpleNamespace

import psutil
import pytest

from statsdump.collectors import system
from statsdump.collectors.system import SystemSample, read_load_average, read_memory, sample_system

KB = 1024


def _virtual_memory() -> SimpleNamespace:
    return SimpleNamespace(
        total=8_000_000 * KB,
        free=2_000_000 * KB,
        buffers=150_000 * KB,
        cached=3_000_000 * KB,
    )


def _fail(*args, **kwargs):
    raise OSError(2, "No such file or directory", "/proc/meminfo")


@pytest.fixture()
def healthy_host(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setattr(system, "MEMINFO_PATH", str(tmp_path / "missing"))
    monkeypatch.setattr(psutil, "virtual_memory", _virtual_memory)
    monkeypatch.setattr(psutil, "getloadavg", lambda: (0.5, 0.25, 0.125))
    monkeypatch.setattr(system, "timestamp_ms", lambda: 1_700_000_000_000)


def test_sample_reads_memory_in_kilobytes_and_load(healthy_host: None) -> None:
    sample = sample_system("web-1")

    assert sample == SystemSample(
        id="web-1",
        time_ms=1_700_000_000_000,
        mem_total=8_000_000,
        mem_free=2_000_000,
        mem_buffers=150_000,
        mem_cached=3_000_000,
        load_avg_1=0.5,
        load_avg_5=0.25,
        load_avg_15=0.125,
    )


def test_default_id_is_localhost(healthy_host: None) -> None:
    assert sample_system().id == "localhost"


def test_memory_failure_leaves_memory_absent_but_keeps_load(
    healthy_host: None, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    monkeypatch.setattr(psutil, "virtual_memory", _fail)

    with caplog.at_level(logging.WARNING):
        sample = sample_system("web-1")

    assert sample.mem_total is None
    assert sample.mem_free is None
    assert sample.mem_buffers is None
    assert sample.mem_cached is None
    assert sample.load_avg_1 == 0.5
    assert sample.id == "web-1"
    assert sample.time_ms == 1_700_000_000_000
    assert "Error loading meminfo" in caplog.text


def test_load_failure_leaves_load_absent_but_keeps_memory(
    healthy_host: None, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    monkeypatch.setattr(psutil, "getloadavg", _fail)

    with caplog.at_level(logging.WARNING):
        sample = sample_system("web-1")

    assert (sample.load_avg_1, sample.load_avg_5, sample.load_avg_15) == (None, None, None)
    assert sample.mem_total == 8_000_000
    assert "Error loading load avg" in caplog.text


def test_both_groups_failing_still_returns_a_record(
    healthy_host: None, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(psutil, "virtual_memory", _fail)
    monkeypatch.setattr(psutil, "getloadavg", _fail)

    sample = sample_system("db")

    assert sample == SystemSample(id="db", time_ms=1_700_000_000_000)


def test_field_group_reads_report_diagnostics(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(psutil, "virtual_memory", _fail)
    monkeypatch.setattr(psutil, "getloadavg", lambda: (1.0, 2.0, 3.0))

    memory, mem_errors = read_memory()
    load, load_errors = read_load_average()

    assert memory is None
    assert len(mem_errors) == 1
    assert load is not None and load.fifteen == 3.0
    assert load_errors == []


def test_missing_clock_leaves_timestamp_absent(healthy_host: None, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(system, "timestamp_ms", lambda: None)

    sample = sample_system("web-1")

    assert sample.time_ms is None
    assert sample.mem_total == 8_000_000


def test_cached_comes_from_meminfo_without_reclaimable_slab(
    healthy_host: None, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    meminfo = tmp_path / "meminfo"
    meminfo.write_text(
        "MemTotal:        8000000 kB\n"
        "Buffers:          150000 kB\n"
        "Cached:          2600000 kB\n"
        "SwapCached:         1024 kB\n"
        "SReclaimable:     400000 kB\n"
    )
    monkeypatch.setattr(system, "MEMINFO_PATH", str(meminfo))

    sample = sample_system("web-1")

    assert sample.mem_cached == 2_600_000
    assert sample.mem_total == 8_000_000


def test_meminfo_without_cached_line_uses_psutil_value(healthy_host: None, tmp_path: Path) -> None:
    meminfo = tmp_path / "meminfo"
    meminfo.write_text("MemTotal:        8000000 kB\n")

    memory, errors = read_memory(str(meminfo))

    assert memory is not None and memory.cached == 3_000_000
    assert errors == []
