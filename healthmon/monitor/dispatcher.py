"""
Alert Dispatcher for Healthmon Monitor

Turns classified observations into alert events and hands them to the
transport. Every observation produces an event, whatever its severity.

Author: Healthmon Authors
SPDX-License-Identifier: BUSL-1.1
"""

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from healthmon.monitor.processes import DEFAULT_TOP_N, ProcessMetric, ProcessReportProvider
from healthmon.monitor.thresholds import Severity

logger = logging.getLogger(__name__)


@dataclass
class ResourceObservation:
    """A single reading ready to be reported."""

    resource_name: str
    value: float | None
    description: str


@dataclass
class AlertEvent:
    """The unit delivered to the monitoring endpoint."""

    service: str
    state: Severity
    metric: float | None
    description: str
    host: str | None = None
    time: int | None = None
    ttl: float | None = None
    tags: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Serializable form; optional fields are omitted when unset."""
        data: dict[str, Any] = {
            "service": self.service,
            "state": self.state.value,
            "metric": self.metric,
            "description": self.description,
        }
        if self.host is not None:
            data["host"] = self.host
        if self.time is not None:
            data["time"] = self.time
        if self.ttl is not None:
            data["ttl"] = self.ttl
        if self.tags:
            data["tags"] = list(self.tags)
        return data


class Transport(Protocol):
    def send(self, event: AlertEvent) -> None: ...


class AlertDispatcher:
    """
    Formats observations and sends them through a transport.

    Args:
        transport: Sink accepting AlertEvent objects
        reports: Optional process report provider for cpu/memory context
        event_host: Host name stamped on every event
        ttl: Event time-to-live in seconds
        tags: Tags stamped on every event
        top_n: Number of processes included in cpu/memory descriptions
    """

    def __init__(
        self,
        transport: Transport,
        reports: ProcessReportProvider | None = None,
        event_host: str | None = None,
        ttl: float | None = None,
        tags: Sequence[str] = (),
        top_n: int = DEFAULT_TOP_N,
        clock: Callable[[], float] = time.time,
    ):
        self.transport = transport
        self.reports = reports
        self.event_host = event_host
        self.ttl = ttl
        self.tags = list(tags)
        self.top_n = top_n
        self._clock = clock

    def dispatch(self, observation: ResourceObservation, state: Severity) -> AlertEvent:
        """Build the event for an observation and send it."""
        event = AlertEvent(
            service=observation.resource_name,
            state=state,
            metric=observation.value,
            description=observation.description,
            host=self.event_host,
            time=int(self._clock()),
            ttl=self.ttl,
            tags=list(self.tags),
        )
        logger.debug(f"{event.service}: {state.value} ({event.metric})")
        self.transport.send(event)
        return event

    def cpu(self, fraction: float, state: Severity) -> AlertEvent:
        summary = f"{fraction * 100:.0f}% user+nice+system"
        description = self._with_report(summary, ProcessMetric.CPU)
        return self.dispatch(ResourceObservation("cpu", fraction, description), state)

    def memory(self, fraction: float, state: Severity) -> AlertEvent:
        summary = f"{fraction * 100:.0f}% used"
        description = self._with_report(summary, ProcessMetric.MEMORY)
        return self.dispatch(ResourceObservation("memory", fraction, description), state)

    def load(self, per_core: float, state: Severity) -> AlertEvent:
        description = f"15-minute load average/core is {per_core:.2f}"
        return self.dispatch(ResourceObservation("load", per_core, description), state)

    def disk(self, mount_point: str, fraction: float, state: Severity) -> AlertEvent:
        description = f"{fraction * 100:.0f}% used"
        return self.dispatch(
            ResourceObservation(f"disk {mount_point}", fraction, description), state
        )

    def unknown(self, service: str, message: str) -> AlertEvent:
        """Report a resource whose counters could not be read."""
        return self.dispatch(ResourceObservation(service, None, message), Severity.UNKNOWN)

    def _with_report(self, summary: str, kind: ProcessMetric) -> str:
        """Append the top-N process report, or return the summary alone."""
        if self.reports is None:
            return summary
        try:
            report = self.reports.top_by_metric(kind, self.top_n)
        except Exception as e:
            logger.warning(f"Process report ({kind.name.lower()}) failed: {e}")
            return summary
        return f"{summary}\n\n{report}" if report else summary
