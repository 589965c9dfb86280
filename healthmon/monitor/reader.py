"""
Metric Reader for Healthmon Monitor

Reads raw kernel counters and parses them into typed values:

    - /proc/stat      aggregate CPU jiffies
    - /proc/cpuinfo   processor topology (logical core count)
    - /proc/loadavg   15-minute load average
    - /proc/meminfo   memory counters (kB)
    - df -P           per-filesystem usage

Parsing lives in module-level functions that take text, so they can be
exercised without a live system. MetricReader wraps them and returns a
Reading for every operation instead of raising.

Author: Healthmon Authors
SPDX-License-Identifier: BUSL-1.1
"""

import logging
import re
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Generic, TypeVar

import psutil

from healthmon.exceptions import ParseError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_PROC_ROOT = "/proc"
DEFAULT_DF_COMMAND = ("df", "-P")

_CPU_LINE = re.compile(r"^cpu\s+(\d+)\s+(\d+)\s+(\d+)\s+(\d+)", re.MULTILINE)
_MEMORY_KEYS = {
    "MemTotal": "total",
    "MemFree": "free",
    "Buffers": "buffers",
    "Cached": "cached",
}


@dataclass(frozen=True)
class RawCpuSample:
    """Cumulative CPU counters in jiffies since boot."""

    user: int
    nice: int
    system: int
    idle: int

    @property
    def busy(self) -> int:
        return self.user + self.nice + self.system


@dataclass(frozen=True)
class MemoryCounters:
    """Memory counters from /proc/meminfo, in kilobytes."""

    total: int
    free: int
    buffers: int
    cached: int

    @property
    def free_effective(self) -> int:
        return self.free + self.buffers + self.cached

    @property
    def used_fraction(self) -> float:
        return 1 - self.free_effective / self.total


@dataclass(frozen=True)
class DiskUsage:
    """Usage of one mounted filesystem."""

    mount_point: str
    used_fraction: float


@dataclass
class Reading(Generic[T]):
    """
    Outcome of a single reader operation.

    Attributes:
        value: Parsed value when the read succeeded
        error: ParseError describing why the read failed
    """

    value: T | None = None
    error: ParseError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Reading[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: ParseError) -> "Reading[T]":
        return cls(error=error)


# =============================================================================
# Parsers
# =============================================================================


def parse_cpu_stat(text: str) -> RawCpuSample:
    """Parse the aggregate cpu line of /proc/stat."""
    match = _CPU_LINE.search(text)
    if not match:
        raise ParseError("/proc/stat doesn't include a CPU line", source="stat")
    user, nice, system, idle = (int(group) for group in match.groups())
    return RawCpuSample(user=user, nice=nice, system=system, idle=idle)


def parse_load_average(text: str) -> float:
    """Return the 15-minute load average (third field of /proc/loadavg)."""
    fields = text.split()
    if len(fields) < 3:
        raise ParseError(
            f"/proc/loadavg has {len(fields)} fields, expected at least 3", source="loadavg"
        )
    try:
        return float(fields[2])
    except ValueError as e:
        raise ParseError(
            f"/proc/loadavg has a malformed 15-minute field: {fields[2]!r}", source="loadavg"
        ) from e


def count_cores(text: str) -> int:
    """
    Count logical execution units described by /proc/cpuinfo.

    Processor blocks carrying both a physical id and a core id are grouped
    by that pair, so repeated pairs count once. Blocks without topology
    information (virtual machines, many non-x86 kernels) each count as a
    core of their own. Blocks without a processor field, such as the
    Hardware/Revision/Serial trailer on ARM kernels, are skipped.
    """
    cores: set[tuple] = set()
    for index, block in enumerate(re.split(r"\n\s*\n", text.strip())):
        fields = {}
        for line in block.splitlines():
            key, sep, value = line.partition(":")
            if sep:
                fields[key.strip()] = value.strip()
        if "processor" not in fields:
            continue

        physical_id = fields.get("physical id")
        core_id = fields.get("core id")
        if physical_id is not None and core_id is not None:
            cores.add(("core", physical_id, core_id))
        else:
            cores.add(("block", index))
    return len(cores)


def parse_meminfo(text: str) -> MemoryCounters:
    """Parse the MemTotal/MemFree/Buffers/Cached counters of /proc/meminfo."""
    values: dict[str, int] = {}
    for line in text.splitlines():
        key, sep, rest = line.partition(":")
        name = _MEMORY_KEYS.get(key.strip())
        if not sep or name is None:
            continue
        fields = rest.split()
        if fields and fields[0].isdigit():
            values[name] = int(fields[0])

    missing = [key for key, name in _MEMORY_KEYS.items() if name not in values]
    if missing:
        raise ParseError(f"/proc/meminfo is missing {', '.join(missing)}", source="meminfo")
    if values["total"] <= 0:
        raise ParseError("/proc/meminfo reports a non-positive MemTotal", source="meminfo")
    return MemoryCounters(**values)


def parse_df(text: str) -> list[DiskUsage]:
    """
    Parse POSIX `df -P` output.

    Only rows whose device starts with "/" are kept; the header and
    pseudo filesystems (tmpfs, proc, overlay, ...) fall out naturally.
    """
    usages = []
    for line in text.splitlines():
        if not line.startswith("/"):
            continue
        fields = line.split()
        if len(fields) < 6:
            logger.debug(f"Skipping short df row: {line!r}")
            continue
        capacity = fields[4].rstrip("%")
        try:
            used = float(capacity) / 100
        except ValueError:
            logger.debug(f"Skipping df row without capacity: {line!r}")
            continue
        usages.append(DiskUsage(mount_point=" ".join(fields[5:]), used_fraction=used))
    return usages


# =============================================================================
# Reader
# =============================================================================


class MetricReader:
    """
    Reads OS counters and returns typed Readings.

    Args:
        proc_root: Directory holding stat, cpuinfo, loadavg and meminfo
        df_command: Command producing the POSIX filesystem usage table
    """

    def __init__(
        self,
        proc_root: str | Path = DEFAULT_PROC_ROOT,
        df_command: Sequence[str] = DEFAULT_DF_COMMAND,
    ):
        self.proc_root = Path(proc_root)
        self.df_command = list(df_command)

    def _read(self, name: str) -> str:
        path = self.proc_root / name
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise ParseError(f"Cannot read {path}: {e}", source=name) from e

    def read_cpu_counters(self) -> Reading[RawCpuSample]:
        try:
            return Reading.success(parse_cpu_stat(self._read("stat")))
        except ParseError as e:
            return Reading.failure(e)

    def read_load_average(self) -> Reading[float]:
        try:
            return Reading.success(parse_load_average(self._read("loadavg")))
        except ParseError as e:
            return Reading.failure(e)

    def read_memory_counters(self) -> Reading[MemoryCounters]:
        try:
            return Reading.success(parse_meminfo(self._read("meminfo")))
        except ParseError as e:
            return Reading.failure(e)

    def read_disk_usage(self) -> Reading[list[DiskUsage]]:
        try:
            result = subprocess.run(
                self.df_command,
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as e:
            return Reading.failure(ParseError(f"Cannot run {' '.join(self.df_command)}: {e}", source="df"))

        # df exits non-zero when a single mount is inaccessible but still
        # prints the rest of the table
        if result.returncode != 0:
            if not result.stdout.strip():
                message = result.stderr.strip() or f"exit status {result.returncode}"
                return Reading.failure(ParseError(f"df failed: {message}", source="df"))
            logger.debug(f"df exited with {result.returncode}: {result.stderr.strip()}")

        return Reading.success(parse_df(result.stdout))

    def count_cores(self) -> int:
        """
        Logical core count used to normalize the load average.

        Falls back to psutil, then to 1, when cpuinfo yields nothing.
        """
        try:
            cores = count_cores(self._read("cpuinfo"))
        except ParseError as e:
            logger.warning(f"{e}; falling back to psutil core count")
            cores = 0

        if cores <= 0:
            cores = psutil.cpu_count(logical=True) or 1
        return cores
