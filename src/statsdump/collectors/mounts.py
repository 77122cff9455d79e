"""Mounted filesystem usage collector."""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, List, NamedTuple, Optional

import psutil

logger = logging.getLogger(__name__)

MOUNTS_PATH = "/proc/mounts"

_OCTAL_ESCAPE = re.compile(r"\\([0-7]{3})")


class FsUsage(NamedTuple):
    """Filesystem capacity in kilobytes."""

    used: int
    available: int
    total: int
    use_pc: int


# Reported when the usage query fails; a broken mount reads as full
FAILED_USAGE = FsUsage(used=0, available=0, total=0, use_pc=100)


@dataclass(frozen=True)
class MountEntry:
    """One line of the mount table."""

    source: str
    dest: str
    fstype: str
    options: List[str] = field(default_factory=list)
    dump: int = 0
    pass_: int = 0


@dataclass(frozen=True)
class MountSample:
    """One row of the ``mount`` stream."""

    time_ms: Optional[int]
    source: str
    dest: str
    fstype: str
    options: str
    dump: int
    pass_: int = field(metadata={"column": "pass"})
    used: int
    available: int
    total: int
    use_pc: int


def usage_from_capacity(total: int, free: int, available: int) -> FsUsage:
    """
    Derive usage figures from capacities in kilobytes.

    ``free`` counts blocks reserved for root, ``available`` does not.
    ``use_pc`` is relative to the space unprivileged users can see
    (used + available), like df, rounded half up.
    """
    used = total - free

    nonroot_total = used + available
    if nonroot_total == 0:
        return FsUsage(used=used, available=available, total=total, use_pc=0)

    use_pc, remainder = divmod(used * 100, nonroot_total)
    if remainder * 2 >= nonroot_total:
        use_pc += 1

    return FsUsage(used=used, available=available, total=total, use_pc=use_pc)


def fs_usage(mount_point: str, disk_usage: Callable[[str], Any] = psutil.disk_usage) -> FsUsage:
    """Query usage of the filesystem mounted at ``mount_point``."""
    try:
        usage = disk_usage(mount_point)
    except OSError as e:
        logger.warning(f"Error reading usage of {mount_point}: {e}")
        return FAILED_USAGE

    # psutil reports free space as what unprivileged users can allocate
    return usage_from_capacity(
        total=usage.total // 1024,
        free=(usage.total - usage.used) // 1024,
        available=usage.free // 1024,
    )


def parse_mount_line(line: str) -> MountEntry:
    """
    Parse a line in fstab/proc-mounts format.

    Raises:
        ValueError: If the line does not have six fields or dump/pass
            are not integers
    """
    fields = line.split()
    if len(fields) != 6:
        raise ValueError(f"expected 6 fields, got {len(fields)}: {line.strip()!r}")

    source, dest, fstype, options, dump, pass_ = fields

    return MountEntry(
        source=unescape_octal(source),
        dest=unescape_octal(dest),
        fstype=unescape_octal(fstype),
        options=[unescape_octal(opt) for opt in options.split(",")],
        dump=int(dump),
        pass_=int(pass_),
    )


def read_mounts(mounts_path: str = MOUNTS_PATH) -> Iterator[MountEntry]:
    """
    Yield the entries of the mount table.

    Raises:
        OSError: If the mount table cannot be opened
    """
    with open(mounts_path, "r", encoding="utf-8", errors="surrogateescape") as f:
        for line in f:
            if not line.strip():
                continue

            try:
                yield parse_mount_line(line)
            except ValueError as e:
                logger.error(f"Error reading mount info: {e}")


def sample_mounts(
    time_ms: Optional[int],
    mounts_path: str = MOUNTS_PATH,
    usage: Callable[[str], FsUsage] = fs_usage,
) -> Iterator[MountSample]:
    """
    Yield one sample per mount table entry.

    If the mount table cannot be read the error is logged and nothing is
    yielded for this tick.
    """
    try:
        entries = read_mounts(mounts_path)
        for entry in entries:
            used, available, total, use_pc = usage(entry.dest)

            yield MountSample(
                time_ms=time_ms,
                source=entry.source,
                dest=entry.dest,
                fstype=entry.fstype,
                options=";".join(entry.options),
                dump=entry.dump,
                pass_=entry.pass_,
                used=used,
                available=available,
                total=total,
                use_pc=use_pc,
            )
    except OSError as e:
        logger.error(f"Error reading mount info: {e}")


def unescape_octal(value: str) -> str:
    """Decode the \\ooo escapes the kernel uses in /proc mount and swap tables."""
    return _OCTAL_ESCAPE.sub(lambda m: chr(int(m.group(1), 8)), value)
