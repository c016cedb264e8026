"""
Metrics Collection - Monitoring Layer

In-process, thread-safe transfer metrics rendered in the Prometheus text
exposition format for the /metrics endpoint. Updates come from the request
tasks on the server's event loop and from test threads, so every series
update happens under the metric's lock.

@.architecture
Incoming: core/streaming.py --- {str metric_name, float value, label values}
Processing: inc(), dec(), set(), observe(), export_prometheus() --- {4 jobs: recording, metric_aggregation, collection, export}
Outgoing: api/endpoints/health.py --- {Counter/Gauge/Histogram instances, str Prometheus format}
"""

import threading
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple

LabelValues = Tuple[str, ...]


def _format_labels(names: List[str], values: LabelValues, **extra: str) -> str:
    pairs = [f'{k}="{v}"' for k, v in zip(names, values)]
    pairs.extend(f'{k}="{v}"' for k, v in extra.items())
    return "{" + ",".join(pairs) + "}" if pairs else ""


class _Metric:
    """Name, help text and label schema shared by every metric type."""

    type_name = "untyped"

    def __init__(self, name: str, help_text: str, labels: Optional[List[str]] = None):
        self.name = name
        self.help_text = help_text
        self.label_names = list(labels or [])
        self._lock = threading.Lock()

    def _key(self, labels: Dict[str, str]) -> LabelValues:
        if set(labels) != set(self.label_names):
            raise ValueError(f"Expected labels {self.label_names}, got {list(labels)}")
        return tuple(str(labels[name]) for name in self.label_names)

    def render(self) -> Iterator[str]:
        yield f"# HELP {self.name} {self.help_text}"
        yield f"# TYPE {self.name} {self.type_name}"
        yield from self._render_samples()

    def _render_samples(self) -> Iterator[str]:
        return iter(())


class _ValueMetric(_Metric):
    """Metric holding one float per label combination."""

    def __init__(self, name: str, help_text: str, labels: Optional[List[str]] = None):
        super().__init__(name, help_text, labels)
        self._values: Dict[LabelValues, float] = {}

    def _add(self, amount: float, labels: Dict[str, str]) -> None:
        key = self._key(labels)
        with self._lock:
            self._values[key] = self._values.get(key, 0.0) + amount

    def get(self, **labels: str) -> float:
        key = self._key(labels)
        with self._lock:
            return self._values.get(key, 0.0)

    def _render_samples(self) -> Iterator[str]:
        with self._lock:
            samples = list(self._values.items())
        for key, value in samples:
            yield f"{self.name}{_format_labels(self.label_names, key)} {value}"


class Counter(_ValueMetric):
    """Monotonically increasing value (transfers, bytes)."""

    type_name = "counter"

    def inc(self, value: float = 1.0, **labels: str) -> None:
        if value < 0:
            raise ValueError("Counter can only be incremented by non-negative values")
        self._add(value, labels)


class Gauge(_ValueMetric):
    """Value that goes up and down (transfers in flight)."""

    type_name = "gauge"

    def set(self, value: float, **labels: str) -> None:
        key = self._key(labels)
        with self._lock:
            self._values[key] = value

    def inc(self, value: float = 1.0, **labels: str) -> None:
        self._add(value, labels)

    def dec(self, value: float = 1.0, **labels: str) -> None:
        self._add(-value, labels)


@dataclass
class _HistogramSeries:
    bucket_counts: List[int]
    total: float = 0.0
    count: int = 0


class Histogram(_Metric):
    """Cumulative bucket counts plus sum and count (transfer duration)."""

    type_name = "histogram"

    # Seconds; transfers run from milliseconds to minutes
    DEFAULT_BUCKETS = [0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0, 60.0, 300.0]

    def __init__(
        self,
        name: str,
        help_text: str,
        labels: Optional[List[str]] = None,
        buckets: Optional[List[float]] = None
    ):
        super().__init__(name, help_text, labels)
        self.buckets = sorted(buckets or self.DEFAULT_BUCKETS)
        self._series: Dict[LabelValues, _HistogramSeries] = {}

    def _new_series(self) -> _HistogramSeries:
        # Last slot is the +Inf bucket
        return _HistogramSeries(bucket_counts=[0] * (len(self.buckets) + 1))

    def observe(self, value: float, **labels: str) -> None:
        key = self._key(labels)
        with self._lock:
            series = self._series.setdefault(key, self._new_series())
            series.total += value
            series.count += 1
            for i, bound in enumerate(self.buckets):
                if value <= bound:
                    series.bucket_counts[i] += 1
            series.bucket_counts[-1] += 1

    def get_stats(self, **labels: str) -> Dict[str, Any]:
        """
        Snapshot of one series.

        Returns:
            Dict with count, sum, average and cumulative buckets keyed by
            upper bound (``inf`` last)
        """
        key = self._key(labels)
        with self._lock:
            series = self._series.get(key) or self._new_series()
            return {
                'count': series.count,
                'sum': series.total,
                'average': series.total / series.count if series.count else 0.0,
                'buckets': dict(zip([*self.buckets, float('inf')], series.bucket_counts)),
            }

    def _render_samples(self) -> Iterator[str]:
        with self._lock:
            snapshot = [
                (key, list(series.bucket_counts), series.total, series.count)
                for key, series in self._series.items()
            ]
        bounds = [str(b) for b in self.buckets] + ["+Inf"]
        for key, bucket_counts, total, count in snapshot:
            for bound, bucket_count in zip(bounds, bucket_counts):
                yield f"{self.name}_bucket{_format_labels(self.label_names, key, le=bound)} {bucket_count}"
            label_str = _format_labels(self.label_names, key)
            yield f"{self.name}_sum{label_str} {total}"
            yield f"{self.name}_count{label_str} {count}"


class MetricsRegistry:
    """Get-or-create store of named metrics, exported in registration order."""

    def __init__(self):
        self._lock = threading.Lock()
        self._metrics: Dict[str, _Metric] = {}

    def _get_or_create(self, metric_class: type, name: str, *args: Any) -> Any:
        with self._lock:
            metric = self._metrics.get(name)
            if metric is None:
                metric = self._metrics[name] = metric_class(name, *args)
            elif not isinstance(metric, metric_class):
                raise ValueError(f"Metric {name} already registered as {metric.type_name}")
            return metric

    def counter(self, name: str, help_text: str, labels: Optional[List[str]] = None) -> Counter:
        return self._get_or_create(Counter, name, help_text, labels)

    def gauge(self, name: str, help_text: str, labels: Optional[List[str]] = None) -> Gauge:
        return self._get_or_create(Gauge, name, help_text, labels)

    def histogram(
        self,
        name: str,
        help_text: str,
        labels: Optional[List[str]] = None,
        buckets: Optional[List[float]] = None
    ) -> Histogram:
        return self._get_or_create(Histogram, name, help_text, labels, buckets)

    def export_prometheus(self) -> str:
        """Render every metric in Prometheus text format (version 0.0.4)."""
        with self._lock:
            metrics = list(self._metrics.values())
        lines = [line for metric in metrics for line in metric.render()]
        return '\n'.join(lines) + '\n'


_global_registry: Optional[MetricsRegistry] = None
_global_registry_lock = threading.Lock()


def get_registry() -> MetricsRegistry:
    """Process-wide registry backing /metrics."""
    global _global_registry
    with _global_registry_lock:
        if _global_registry is None:
            _global_registry = MetricsRegistry()
        return _global_registry


def counter(name: str, help_text: str, labels: Optional[List[str]] = None) -> Counter:
    return get_registry().counter(name, help_text, labels)


def gauge(name: str, help_text: str, labels: Optional[List[str]] = None) -> Gauge:
    return get_registry().gauge(name, help_text, labels)


def histogram(
    name: str,
    help_text: str,
    labels: Optional[List[str]] = None,
    buckets: Optional[List[float]] = None
) -> Histogram:
    return get_registry().histogram(name, help_text, labels, buckets)
