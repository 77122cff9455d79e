"""Wall-clock timestamps for samples."""

import logging
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


def timestamp_ms(clock: Callable[[], float] = time.time) -> Optional[int]:
    """
    Milliseconds since the Unix epoch.

    Returns None if the clock cannot be read or reports a time before the
    epoch, so a bad clock never shows up as 1970.
    """
    try:
        now = clock()
    except OSError as e:
        logger.error(f"Error getting time: {e}")
        return None

    if now < 0:
        logger.error(f"Error getting time: clock is before the epoch ({now})")
        return None

    return int(now * 1000)
