"""Sampling loop shared by every collection domain."""

import logging
import signal
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional, Tuple

from .collectors import sample_system, timestamp_ms
from .emitter import CsvEmitter, EmitResult

logger = logging.getLogger(__name__)


class LoopStatus(Enum):
    RUNNING = "running"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class LoopState:
    """State carried from one tick to the next."""

    status: LoopStatus = LoopStatus.RUNNING
    ticks: int = 0
    headers_written: bool = False


Step = Callable[[LoopState], Tuple[LoopState, List[Any]]]


def setup_signals() -> None:
    """Die on SIGPIPE instead of raising, so a closed reader ends the process."""
    if hasattr(signal, "SIGPIPE"):
        signal.signal(signal.SIGPIPE, signal.SIG_DFL)


def advance(state: LoopState, result: EmitResult) -> LoopState:
    """State after a tick whose output produced ``result``."""
    if result.closed:
        logger.info("Output closed, stopping")

    return replace(
        state,
        status=LoopStatus.TERMINATED if result.closed else state.status,
        ticks=state.ticks + 1,
        headers_written=state.headers_written or result.header_written,
    )


def system_step(
    sample_id: str,
    emitter: CsvEmitter,
    sampler: Callable[[str], Any] = sample_system,
) -> Step:
    """
    Tick of the ``sys`` stream: one row per tick, header only on the
    first successful write of the loop.
    """

    def step(state: LoopState) -> Tuple[LoopState, List[Any]]:
        result = emitter.write([sampler(sample_id)], has_headers=not state.headers_written)
        return advance(state, result), result.rows

    return step


def batch_step(
    sample_all: Callable[[Optional[int]], Iterable[Any]],
    emitter: CsvEmitter,
    clock: Callable[[], Optional[int]] = timestamp_ms,
) -> Step:
    """Tick of a multi-row stream: every tick starts with a header line."""

    def step(state: LoopState) -> Tuple[LoopState, List[Any]]:
        result = emitter.write(sample_all(clock()), has_headers=True)
        return advance(state, result), result.rows

    return step


def run(
    step: Step,
    interval: float,
    sleep: Callable[[float], None] = time.sleep,
    max_ticks: Optional[int] = None,
) -> LoopState:
    """
    Call ``step`` every ``interval`` seconds until the output is closed.

    Args:
        step: Loop body, see system_step and batch_step
        interval: Seconds to sleep after each tick
        sleep: Sleep function
        max_ticks: Stop after this many ticks (unbounded when None)

    Returns:
        The final loop state
    """
    state = LoopState()

    while state.status is LoopStatus.RUNNING:
        state, _ = step(state)

        if max_ticks is not None and state.ticks >= max_ticks:
            break
        if state.status is LoopStatus.RUNNING:
            sleep(interval)

    return state
