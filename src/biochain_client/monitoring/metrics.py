"""
Metrics collection for the submission pipeline.

Thread-safe counters and histograms with label support, held in a registry
so the submitter and poller can record attempts, retries, outcomes and
confirmation latency.
"""

import threading
import time
from abc import ABC, abstractmethod
from collections import defaultdict
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class MetricType(Enum):
    """Types of metrics."""
    COUNTER = "counter"
    HISTOGRAM = "histogram"


def _labels_to_key(labels: Optional[Dict[str, str]]) -> str:
    if not labels:
        return ""
    return "|".join(f"{k}={v}" for k, v in sorted(labels.items()))


class Metric(ABC):
    """Base class for metrics."""

    def __init__(self, name: str, description: str = ""):
        self.name = name
        self.description = description
        self._lock = threading.RLock()
        self._created_at = time.time()

    @property
    @abstractmethod
    def metric_type(self) -> MetricType:
        """Get metric type."""
        pass

    @abstractmethod
    def get_value(self, labels: Optional[Dict[str, str]] = None) -> Union[float, Dict[str, Any]]:
        """Get current metric value."""
        pass

    @abstractmethod
    def reset(self) -> None:
        """Reset metric to initial state."""
        pass

    def get_info(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.metric_type.value,
            "description": self.description,
            "created_at": self._created_at,
        }


class Counter(Metric):
    """Monotonically increasing counter."""

    def __init__(self, name: str, description: str = ""):
        super().__init__(name, description)
        self._values: Dict[str, float] = defaultdict(float)

    @property
    def metric_type(self) -> MetricType:
        return MetricType.COUNTER

    def increment(self, amount: float = 1.0, labels: Optional[Dict[str, str]] = None) -> None:
        """
        Increment counter.

        Args:
            amount: Amount to increment (must be >= 0)
            labels: Optional labels
        """
        if amount < 0:
            raise ValueError("Counter increment must be >= 0")
        with self._lock:
            self._values[_labels_to_key(labels)] += amount

    def get_value(self, labels: Optional[Dict[str, str]] = None) -> float:
        with self._lock:
            return self._values.get(_labels_to_key(labels), 0.0)

    def get_all_values(self) -> Dict[str, float]:
        with self._lock:
            return dict(self._values)

    def reset(self) -> None:
        with self._lock:
            self._values.clear()


class Histogram(Metric):
    """
    Bucketed distribution of observed values.

    Only cumulative bucket counts and running totals are kept per label set.
    """

    def __init__(self, name: str, description: str = "", buckets: Optional[List[float]] = None):
        super().__init__(name, description)
        self.buckets = sorted(buckets) if buckets else self._default_buckets()
        self._bucket_counts: Dict[str, Dict[float, int]] = defaultdict(lambda: defaultdict(int))
        self._sums: Dict[str, float] = defaultdict(float)
        self._counts: Dict[str, int] = defaultdict(int)
        self._mins: Dict[str, float] = {}
        self._maxes: Dict[str, float] = {}

    @property
    def metric_type(self) -> MetricType:
        return MetricType.HISTOGRAM

    def observe(self, value: float, labels: Optional[Dict[str, str]] = None) -> None:
        with self._lock:
            key = _labels_to_key(labels)
            for bucket in self.buckets:
                if value <= bucket:
                    self._bucket_counts[key][bucket] += 1
            self._sums[key] += value
            self._counts[key] += 1
            self._mins[key] = min(value, self._mins.get(key, value))
            self._maxes[key] = max(value, self._maxes.get(key, value))

    def get_value(self, labels: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """Summary statistics for one label set."""
        with self._lock:
            key = _labels_to_key(labels)
            count = self._counts.get(key, 0)
            total = self._sums.get(key, 0.0)
            return {
                "buckets": dict(self._bucket_counts.get(key, {})),
                "count": count,
                "sum": total,
                "min": self._mins.get(key, 0.0),
                "max": self._maxes.get(key, 0.0),
                "mean": total / max(count, 1),
            }

    def reset(self) -> None:
        with self._lock:
            self._bucket_counts.clear()
            self._sums.clear()
            self._counts.clear()
            self._mins.clear()
            self._maxes.clear()

    @staticmethod
    def _default_buckets() -> List[float]:
        # 10ms to ~164s, then unbounded
        buckets = [0.01 * (2 ** i) for i in range(15)]
        buckets.append(float("inf"))
        return buckets


class MetricsRegistry:
    """Registry of named metrics; lookups create the metric on first use."""

    def __init__(self):
        self._metrics: Dict[str, Metric] = {}
        self._lock = threading.RLock()

    def _get_or_create(self, cls, name: str, description: str) -> Metric:
        with self._lock:
            metric = self._metrics.get(name)
            if metric is None:
                metric = cls(name, description)
                self._metrics[name] = metric
            elif not isinstance(metric, cls):
                raise ValueError(f"Metric {name} already registered as {metric.metric_type.value}")
            return metric

    def counter(self, name: str, description: str = "") -> Counter:
        return self._get_or_create(Counter, name, description)

    def histogram(self, name: str, description: str = "") -> Histogram:
        return self._get_or_create(Histogram, name, description)

    def get(self, name: str) -> Optional[Metric]:
        with self._lock:
            return self._metrics.get(name)

    def snapshot(self) -> Dict[str, Any]:
        """Current values of all metrics."""
        with self._lock:
            metrics = list(self._metrics.values())
        result: Dict[str, Any] = {}
        for metric in metrics:
            if isinstance(metric, Counter):
                result[metric.name] = metric.get_all_values()
            else:
                result[metric.name] = metric.get_value()
        return result

    def reset(self) -> None:
        with self._lock:
            for metric in self._metrics.values():
                metric.reset()


_default_registry: Optional[MetricsRegistry] = None
_registry_lock = threading.Lock()


def get_registry() -> MetricsRegistry:
    """Get the process-wide default registry."""
    global _default_registry
    with _registry_lock:
        if _default_registry is None:
            _default_registry = MetricsRegistry()
        return _default_registry
