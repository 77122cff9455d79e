"""Configuration management for statsdump."""

import json
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from .collectors.system import DEFAULT_ID

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECS = 5


@dataclass
class CollectorConfig:
    """Collector configuration."""

    id: str = DEFAULT_ID  # sys stream only
    interval_secs: int = DEFAULT_INTERVAL_SECS


def parse_interval(value: Optional[Union[str, int]], default: int = DEFAULT_INTERVAL_SECS) -> int:
    """
    Parse an interval in whole seconds.

    Anything that is not a positive integer, or is too large to sleep
    on, is replaced with ``default`` and a warning is logged.
    """
    if value is None:
        return default

    try:
        secs = int(value)
    except (TypeError, ValueError) as e:
        logger.warning(f"Invalid interval ({e}), using default of {default} seconds")
        return default

    if secs <= 0:
        logger.warning(f"Invalid interval ({secs} is not positive), using default of {default} seconds")
        return default

    if secs > threading.TIMEOUT_MAX:
        logger.warning(f"Invalid interval ({secs} is too large), using default of {default} seconds")
        return default

    return secs


class ConfigManager:
    """Loads collector configuration from a JSON file."""

    def __init__(self, config_path: str = "/etc/statsdump/config.json"):
        self.config_path = Path(config_path)

    def load(self) -> CollectorConfig:
        """
        Load configuration from file.

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file is not a JSON object of known keys
        """
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config file not found: {self.config_path}")

        with open(self.config_path, "r") as f:
            data = json.load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Config file must hold a JSON object: {self.config_path}")

        try:
            config = CollectorConfig(**data)
        except TypeError as e:
            raise ValueError(f"Invalid config file {self.config_path}: {e}") from e

        config.id = str(config.id)
        config.interval_secs = parse_interval(config.interval_secs)
        return config

    def exists(self) -> bool:
        """Check if config file exists."""
        return self.config_path.exists()
