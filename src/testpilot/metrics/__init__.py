"""Resource metrics collection."""

from testpilot.metrics.collector import (
    MetricsCollector,
    estimate_cache_activity,
    estimate_network_requests,
)
from testpilot.metrics.sampler import ProcessSampler, ProcessUsage

__all__ = [
    "MetricsCollector",
    "ProcessSampler",
    "ProcessUsage",
    "estimate_cache_activity",
    "estimate_network_requests",
]
