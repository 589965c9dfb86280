"""
Threshold Evaluation for Healthmon Monitor

Maps a utilization value onto a severity tier using a warning/critical pair.
The same rule is applied to cpu, disk, load and memory readings.

Author: Healthmon Authors
SPDX-License-Identifier: BUSL-1.1
"""

from dataclasses import dataclass
from enum import Enum

# Tick order: cpu, memory, load, disk
RESOURCES = ("cpu", "memory", "load", "disk")


class Severity(Enum):
    """Severity tiers attached to every alert event."""

    OK = "ok"
    WARNING = "warning"
    CRITICAL = "critical"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Thresholds:
    """Warning/critical pair for one resource kind."""

    warning: float
    critical: float

    def __post_init__(self):
        if self.warning > self.critical:
            raise ValueError(
                f"warning threshold ({self.warning}) must not exceed "
                f"critical threshold ({self.critical})"
            )


@dataclass(frozen=True)
class ResourceThresholds:
    """Threshold pairs for every monitored resource kind.

    cpu, disk and memory are fractions of capacity; load is the 15-minute
    load average divided by the logical core count.
    """

    cpu: Thresholds = Thresholds(warning=0.90, critical=0.95)
    disk: Thresholds = Thresholds(warning=0.90, critical=0.95)
    load: Thresholds = Thresholds(warning=3.0, critical=8.0)
    memory: Thresholds = Thresholds(warning=0.85, critical=0.95)

    def for_resource(self, resource: str) -> Thresholds:
        """Look up the pair for "cpu", "disk", "load" or "memory"."""
        if resource not in RESOURCES:
            raise KeyError(f"No thresholds for resource: {resource}")
        return getattr(self, resource)


def classify(value: float, thresholds: Thresholds) -> Severity:
    """
    Classify a value against its thresholds.

    Comparison is strict: a value equal to a threshold is not escalated.
    Never returns Severity.UNKNOWN; that tier is assigned when a reading
    could not be obtained at all.
    """
    if value > thresholds.critical:
        return Severity.CRITICAL
    if value > thresholds.warning:
        return Severity.WARNING
    return Severity.OK
