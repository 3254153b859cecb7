"""
Monitoring for the submission pipeline.
"""

from .metrics import Counter, Histogram, Metric, MetricType, MetricsRegistry, get_registry

__all__ = [
    "Counter",
    "Histogram",
    "Metric",
    "MetricType",
    "MetricsRegistry",
    "get_registry",
]
