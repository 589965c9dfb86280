"""
Healthmon Monitor Module

Host health sampling, classification and alert dispatch.
"""

from healthmon.monitor.delta import DeltaTracker
from healthmon.monitor.dispatcher import AlertDispatcher, AlertEvent, ResourceObservation
from healthmon.monitor.processes import ProcessMetric, ProcessReportProvider, PsutilProcessReport
from healthmon.monitor.reader import (
    DiskUsage,
    MemoryCounters,
    MetricReader,
    RawCpuSample,
    Reading,
)
from healthmon.monitor.scheduler import Scheduler
from healthmon.monitor.thresholds import ResourceThresholds, Severity, Thresholds, classify

__all__ = [
    "AlertDispatcher",
    "AlertEvent",
    "DeltaTracker",
    "DiskUsage",
    "MemoryCounters",
    "MetricReader",
    "ProcessMetric",
    "ProcessReportProvider",
    "PsutilProcessReport",
    "RawCpuSample",
    "Reading",
    "ResourceObservation",
    "ResourceThresholds",
    "Scheduler",
    "Severity",
    "Thresholds",
    "classify",
]
