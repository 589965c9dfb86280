"""
Process Reports for Healthmon Monitor

Renders the top processes by CPU or memory share as plain text for
inclusion in alert descriptions.

Author: Healthmon Authors
SPDX-License-Identifier: BUSL-1.1
"""

import logging
from enum import Enum
from typing import Protocol

import psutil

logger = logging.getLogger(__name__)

DEFAULT_TOP_N = 10


class ProcessMetric(Enum):
    """Sort key for process reports."""

    CPU = "cpu_percent"
    MEMORY = "memory_percent"

    @property
    def header(self) -> str:
        return "%CPU" if self is ProcessMetric.CPU else "%MEM"


class ProcessReportProvider(Protocol):
    """Anything that can describe the busiest processes on the host."""

    def top_by_metric(self, kind: ProcessMetric, n: int = DEFAULT_TOP_N) -> str: ...


class PsutilProcessReport:
    """
    Process report backed by psutil.

    psutil caches Process objects between process_iter() calls, so CPU
    percentages after the first report cover the time since the previous
    one. The very first CPU report shows 0.0 for every process.
    """

    def top_by_metric(self, kind: ProcessMetric, n: int = DEFAULT_TOP_N) -> str:
        rows = []
        for proc in psutil.process_iter(["pid", "name", kind.value]):
            info = proc.info
            value = info.get(kind.value)
            if value is None:
                # AccessDenied leaves the attribute unset
                continue
            rows.append((value, info["pid"], info.get("name") or "?"))

        rows.sort(key=lambda row: row[0], reverse=True)
        lines = [f"{kind.header:>5} {'PID':>7} COMMAND"]
        lines.extend(f"{value:5.1f} {pid:7d} {name}" for value, pid, name in rows[:n])
        return "\n".join(lines)
