"""Telemetry collectors, one per output stream."""

from .clock import timestamp_ms
from .system import SystemSample, sample_system
from .processes import ProcessSample, sample_processes
from .mounts import MountSample, fs_usage, sample_mounts
from .swaps import SwapSample, sample_swaps

__all__ = [
    "timestamp_ms",
    "SystemSample",
    "sample_system",
    "ProcessSample",
    "sample_processes",
    "MountSample",
    "fs_usage",
    "sample_mounts",
    "SwapSample",
    "sample_swaps",
]
