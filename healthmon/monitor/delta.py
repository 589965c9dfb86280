"""
CPU Delta Tracking for Healthmon Monitor

Converts two cumulative /proc/stat samples into a utilization fraction
for the interval between them.

Author: Healthmon Authors
SPDX-License-Identifier: BUSL-1.1
"""

import logging

from healthmon.monitor.reader import RawCpuSample

logger = logging.getLogger(__name__)


class DeltaTracker:
    """
    Holds the previous CPU sample and computes interval utilization.

    Example:
        tracker = DeltaTracker()
        tracker.update(first)   # None, nothing to compare against yet
        tracker.update(second)  # busy fraction between first and second
    """

    def __init__(self):
        self._previous: RawCpuSample | None = None

    @property
    def previous(self) -> RawCpuSample | None:
        """The retained baseline sample, if any."""
        return self._previous

    def reset(self) -> None:
        """Forget the baseline; the next update starts a new interval."""
        self._previous = None

    def update(self, sample: RawCpuSample) -> float | None:
        """
        Record a sample and return the busy fraction since the previous one.

        Args:
            sample: Current cumulative CPU counters

        Returns:
            used / (used + idle delta), or None when there is no usable
            baseline (first call, or counters went backwards)
        """
        previous = self._previous
        self._previous = sample

        if previous is None:
            return None

        used = sample.busy - previous.busy
        idle = sample.idle - previous.idle
        total = used + idle

        # Counter wraparound or a reboot between ticks: reseed and skip
        if used < 0 or idle < 0 or total <= 0:
            logger.warning(
                f"Discarding CPU interval (used={used}, idle={idle}); "
                "counters reset or did not advance"
            )
            return None

        return used / total
