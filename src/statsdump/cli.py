"""Command-line interface for statsdump."""

import argparse
import logging
import sys
from typing import List, Optional

from . import __version__
from .config import CollectorConfig, ConfigManager, parse_interval
from .collectors import sample_mounts, sample_processes, sample_swaps
from .emitter import CsvEmitter
from .scheduler import Step, batch_step, run, setup_signals, system_step

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("statsdump")


def load_config(args: argparse.Namespace) -> CollectorConfig:
    """Build the effective configuration: CLI flags over config file over defaults."""
    config = CollectorConfig()

    if args.config:
        manager = ConfigManager(args.config)
        if not manager.exists():
            logger.warning(f"Config file not found: {args.config}, using defaults")
        else:
            try:
                config = manager.load()
            except (OSError, ValueError) as e:
                logger.warning(f"Could not load config ({e}), using defaults")

    if getattr(args, "id", None) is not None:
        config.id = args.id

    if args.interval is not None:
        config.interval_secs = parse_interval(args.interval)

    return config


def _loop(step: Step, config: CollectorConfig) -> int:
    try:
        run(step, config.interval_secs)
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 130

    return 0


def cmd_sys(args: argparse.Namespace) -> int:
    """Dump system memory and load averages."""
    config = load_config(args)
    logger.debug(f"Collecting system stats as {config.id!r} every {config.interval_secs}s")
    return _loop(system_step(config.id, CsvEmitter()), config)


def cmd_proc(args: argparse.Namespace) -> int:
    """Dump per-process counters."""
    config = load_config(args)
    return _loop(batch_step(sample_processes, CsvEmitter()), config)


def cmd_mount(args: argparse.Namespace) -> int:
    """Dump mounted filesystem usage."""
    config = load_config(args)
    return _loop(batch_step(sample_mounts, CsvEmitter()), config)


def cmd_swap(args: argparse.Namespace) -> int:
    """Dump swap device usage."""
    config = load_config(args)
    return _loop(batch_step(sample_swaps, CsvEmitter()), config)


def _add_interval(parser: argparse.ArgumentParser) -> None:
    # Validated by parse_interval
    parser.add_argument(
        "-s",
        "--interval-secs",
        dest="interval",
        metavar="SECS",
        help="interval in seconds between writes (default: 5)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="statsdump",
        description="statsdump - dumps system stats as CSV",
    )

    parser.add_argument("--version", action="version", version=f"statsdump {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug messages")
    parser.add_argument("--config", metavar="PATH", help="JSON config file with id and interval_secs")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    sys_parser = subparsers.add_parser("sys", help="Collect system information (memory, load)")
    sys_parser.add_argument(
        "-i",
        "--id",
        metavar="ID",
        help="identifier of the stats, use hostname or similar (default: localhost)",
    )
    _add_interval(sys_parser)

    proc_parser = subparsers.add_parser("proc", help="Collect process information (pid, fd, cmd etc)")
    _add_interval(proc_parser)

    mount_parser = subparsers.add_parser("mount", help="Collect mounted fs information")
    _add_interval(mount_parser)

    swap_parser = subparsers.add_parser("swap", help="Collect swap device information")
    _add_interval(swap_parser)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if not args.command:
        logger.info("nothing to do")
        return 0

    setup_signals()

    # Route to command handler
    if args.command == "sys":
        return cmd_sys(args)
    elif args.command == "proc":
        return cmd_proc(args)
    elif args.command == "mount":
        return cmd_mount(args)
    elif args.command == "swap":
        return cmd_swap(args)
    else:
        logger.info("nothing to do")
        return 0


if __name__ == "__main__":
    sys.exit(main())
