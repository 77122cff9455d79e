"""Swap device collector."""

import logging
from dataclasses import dataclass
from typing import Iterator, Optional

from .mounts import unescape_octal

logger = logging.getLogger(__name__)

SWAPS_PATH = "/proc/swaps"


@dataclass(frozen=True)
class SwapSample:
    """One row of the ``swap`` stream. Sizes are in kilobytes."""

    time_ms: Optional[int]
    source: str
    kind: str
    size: int
    used: int
    priority: int


def parse_swap_line(time_ms: Optional[int], line: str) -> SwapSample:
    """
    Parse one data line of /proc/swaps.

    Raises:
        ValueError: If the line is malformed
    """
    fields = line.split()
    if len(fields) != 5:
        raise ValueError(f"expected 5 fields, got {len(fields)}: {line.strip()!r}")

    source, kind, size, used, priority = fields

    return SwapSample(
        time_ms=time_ms,
        source=unescape_octal(source),
        kind=kind,
        size=int(size),
        used=int(used),
        priority=int(priority),
    )


def sample_swaps(time_ms: Optional[int], swaps_path: str = SWAPS_PATH) -> Iterator[SwapSample]:
    """Yield one sample per active swap device."""
    try:
        with open(swaps_path, "r", encoding="utf-8", errors="surrogateescape") as f:
            # First line is the column header
            next(f, None)
            for line in f:
                if not line.strip():
                    continue

                try:
                    yield parse_swap_line(time_ms, line)
                except ValueError as e:
                    logger.error(f"Error reading swap mount info: {e}")
    except OSError as e:
        logger.error(f"Error reading swap mount info: {e}")
