"""
Tick Scheduler for Healthmon Monitor

Runs the read -> classify -> dispatch cycle at a fixed interval. A failure
inside a tick aborts the rest of that tick, is logged with its traceback,
and is followed by a cooldown; the loop itself keeps going.

Author: Healthmon Authors
SPDX-License-Identifier: BUSL-1.1
"""

import logging
import threading
from collections.abc import Iterable

from healthmon.monitor.delta import DeltaTracker
from healthmon.monitor.dispatcher import AlertDispatcher
from healthmon.monitor.reader import MetricReader
from healthmon.monitor.thresholds import RESOURCES, ResourceThresholds, classify

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 5.0
ERROR_COOLDOWN = 10.0


class Scheduler:
    """
    Drives monitoring ticks.

    Example:
        scheduler = Scheduler(MetricReader(), dispatcher, interval=5.0)
        scheduler.run()  # until stop() or process exit
    """

    def __init__(
        self,
        reader: MetricReader,
        dispatcher: AlertDispatcher,
        thresholds: ResourceThresholds | None = None,
        interval: float = DEFAULT_INTERVAL,
        checks: Iterable[str] | None = None,
        cores: int | None = None,
        tracker: DeltaTracker | None = None,
        cooldown: float = ERROR_COOLDOWN,
    ):
        self.reader = reader
        self.dispatcher = dispatcher
        self.thresholds = thresholds or ResourceThresholds()
        self.interval = interval
        self.cooldown = cooldown
        self.tracker = tracker or DeltaTracker()

        enabled = set(checks) if checks is not None else set(RESOURCES)
        unknown = enabled - set(RESOURCES)
        if unknown:
            raise ValueError(f"Unknown checks: {', '.join(sorted(unknown))}")
        # Keep the fixed tick order regardless of how checks were given
        self.checks = [name for name in RESOURCES if name in enabled]

        if cores is None and "load" in self.checks:
            cores = reader.count_cores()
            logger.debug(f"Detected {cores} logical cores")
        self.cores = cores or 1

        self.tick_count = 0
        self.error_count = 0
        self._stop_event = threading.Event()

    def tick(self) -> None:
        """Evaluate every enabled check once, in order."""
        for name in self.checks:
            getattr(self, f"check_{name}")()
        self.tick_count += 1

    def check_cpu(self) -> None:
        reading = self.reader.read_cpu_counters()
        if not reading.ok:
            # The baseline must come from the immediately preceding tick
            self.tracker.reset()
            self.dispatcher.unknown("cpu", str(reading.error))
            return

        fraction = self.tracker.update(reading.value)
        if fraction is None:
            return
        self.dispatcher.cpu(fraction, classify(fraction, self.thresholds.cpu))

    def check_memory(self) -> None:
        reading = self.reader.read_memory_counters()
        if not reading.ok:
            self.dispatcher.unknown("memory", str(reading.error))
            return

        fraction = reading.value.used_fraction
        self.dispatcher.memory(fraction, classify(fraction, self.thresholds.memory))

    def check_load(self) -> None:
        reading = self.reader.read_load_average()
        if not reading.ok:
            self.dispatcher.unknown("load", str(reading.error))
            return

        per_core = reading.value / self.cores
        self.dispatcher.load(per_core, classify(per_core, self.thresholds.load))

    def check_disk(self) -> None:
        reading = self.reader.read_disk_usage()
        if not reading.ok:
            self.dispatcher.unknown("disk", str(reading.error))
            return

        for usage in reading.value:
            self.dispatcher.disk(
                usage.mount_point,
                usage.used_fraction,
                classify(usage.used_fraction, self.thresholds.disk),
            )

    def run(self, max_ticks: int | None = None) -> None:
        """
        Tick until stop() is called or max_ticks ticks have been attempted.

        Args:
            max_ticks: Optional bound on the number of ticks (None = forever)
        """
        attempted = 0
        logger.info(f"Monitoring {', '.join(self.checks)} every {self.interval}s")

        while not self._stop_event.is_set():
            try:
                self.tick()
            except Exception as e:
                self.error_count += 1
                logger.error(f"Tick failed: {type(e).__name__}: {e}", exc_info=True)
                self._stop_event.wait(timeout=self.cooldown)

            attempted += 1
            if max_ticks is not None and attempted >= max_ticks:
                break
            self._stop_event.wait(timeout=self.interval)

        logger.debug(f"Scheduler stopped after {attempted} ticks")

    def stop(self) -> None:
        """Ask the loop to exit after its current wait.

        A stop issued before run() keeps run() from ticking at all.
        """
        self._stop_event.set()
