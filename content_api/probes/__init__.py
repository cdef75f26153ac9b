"""Health/diagnostic probes."""

from content_api.probes.aggregator import DatabaseProbe, ProbeAggregator

__all__ = ["DatabaseProbe", "ProbeAggregator"]
