"""
Replay metrics.

Keeps counters, gauges and histograms in an in-process registry and renders
them in the Prometheus text exposition format for the /metrics endpoint.
"""

import logging
import time
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class MetricType(Enum):
    """Type of metric."""
    COUNTER = "counter"      # Monotonically increasing
    GAUGE = "gauge"          # Can go up and down
    HISTOGRAM = "histogram"  # Distribution of values


@dataclass
class MetricValue:
    """A single metric value with labels."""
    name: str
    value: float
    metric_type: MetricType
    labels: Dict[str, str] = field(default_factory=dict)
    timestamp: Optional[float] = None
    help_text: str = ""
    unit: str = ""


class MetricsRegistry:
    """
    Central registry for all metrics.

    Collectors write here, the /metrics endpoint reads from here.
    """

    def __init__(self, history_size: int = 1000):
        self.history_size = history_size
        self._metrics: Dict[str, MetricValue] = {}
        self._counters: Dict[str, float] = defaultdict(float)
        self._histograms: Dict[str, list] = defaultdict(list)

    def gauge(
        self,
        name: str,
        value: float,
        labels: Optional[Dict[str, str]] = None,
        help_text: str = "",
        unit: str = "",
    ):
        """Set a gauge metric (can go up or down)."""
        key = self._make_key(name, labels)
        self._metrics[key] = MetricValue(
            name=name,
            value=value,
            metric_type=MetricType.GAUGE,
            labels=labels or {},
            timestamp=time.time(),
            help_text=help_text,
            unit=unit,
        )

    def counter(
        self,
        name: str,
        value: float = 1.0,
        labels: Optional[Dict[str, str]] = None,
        help_text: str = "",
    ):
        """Increment a counter metric (monotonically increasing)."""
        key = self._make_key(name, labels)
        self._counters[key] += value
        self._metrics[key] = MetricValue(
            name=name,
            value=self._counters[key],
            metric_type=MetricType.COUNTER,
            labels=labels or {},
            timestamp=time.time(),
            help_text=help_text,
        )

    def histogram(
        self,
        name: str,
        value: float,
        labels: Optional[Dict[str, str]] = None,
        help_text: str = "",
    ):
        """Record a histogram value. The exported value is the running mean."""
        key = self._make_key(name, labels)
        self._histograms[key].append(value)

        if len(self._histograms[key]) > self.history_size:
            self._histograms[key] = self._histograms[key][-self.history_size:]

        values = self._histograms[key]
        self._metrics[key] = MetricValue(
            name=name,
            value=sum(values) / len(values),
            metric_type=MetricType.HISTOGRAM,
            labels=labels or {},
            timestamp=time.time(),
            help_text=help_text,
        )

    def _make_key(self, name: str, labels: Optional[Dict[str, str]]) -> str:
        """Create a unique key for a metric with labels."""
        if not labels:
            return name
        label_str = ",".join(f"{k}={v}" for k, v in sorted(labels.items()))
        return f"{name}{{{label_str}}}"

    def get(self, name: str, labels: Optional[Dict[str, str]] = None) -> Optional[MetricValue]:
        return self._metrics.get(self._make_key(name, labels))

    def get_all_metrics(self) -> list[MetricValue]:
        """Get all registered metrics."""
        return list(self._metrics.values())

    def clear(self):
        """Clear all metrics (useful for testing)."""
        self._metrics.clear()
        self._counters.clear()
        self._histograms.clear()


# Global registry
_registry = MetricsRegistry()


def get_registry() -> MetricsRegistry:
    """Get the global metrics registry."""
    return _registry


def format_prometheus(metrics: list[MetricValue], prefix: str = "typelog") -> str:
    """
    Format metrics in Prometheus text format.

    # HELP typelog_frames_published_total Replay frames published
    # TYPE typelog_frames_published_total counter
    typelog_frames_published_total{document="n1"} 42
    """
    lines = []
    seen_names = set()

    for metric in metrics:
        full_name = f"{prefix}_{metric.name}"

        # HELP and TYPE only once per metric name
        if full_name not in seen_names:
            seen_names.add(full_name)
            if metric.help_text:
                lines.append(f"# HELP {full_name} {metric.help_text}")
            lines.append(f"# TYPE {full_name} {metric.metric_type.value}")

        if metric.labels:
            label_str = ",".join(
                f'{k}="{v}"' for k, v in metric.labels.items()
            )
            lines.append(f"{full_name}{{{label_str}}} {metric.value}")
        else:
            lines.append(f"{full_name} {metric.value}")

    return "\n".join(lines) + "\n"


class ReplayMetricsCollector:
    """
    Records replay activity for one viewed document.

    Call the record_* methods from the playback path; values are exported by
    whatever reads the registry.
    """

    def __init__(
        self,
        document_id: str,
        registry: Optional[MetricsRegistry] = None,
    ):
        self.document_id = document_id
        self.registry = registry or get_registry()
        self._labels = {"document": document_id}

    def record_replay_started(self):
        self.registry.counter(
            "replays_started_total",
            1,
            self._labels,
            help_text="Replays started",
        )

    def record_no_events(self):
        self.registry.counter(
            "replays_rejected_total",
            1,
            self._labels,
            help_text="Replay starts rejected because the logs were empty",
        )

    def record_frame(self):
        self.registry.counter(
            "frames_published_total",
            1,
            self._labels,
            help_text="Replay frames published",
        )

    def record_seek(self):
        self.registry.counter(
            "seeks_total",
            1,
            self._labels,
            help_text="Explicit seeks",
        )

    def update_speed(self, speed: float):
        self.registry.gauge(
            "playback_speed",
            speed,
            self._labels,
            help_text="Current playback speed multiplier",
        )

    def record_tick_lag(self, lag_ms: float):
        self.registry.histogram(
            "tick_lag_ms",
            lag_ms,
            self._labels,
            help_text="Delay between scheduled and actual tick time in milliseconds",
        )
