"""Periodic system telemetry dumped as CSV."""

__version__ = "0.3.0"
