"""
Tests for the shared metrics module.
"""

import pytest

from typelog.shared.metrics import (
    MetricType,
    MetricsRegistry,
    ReplayMetricsCollector,
    format_prometheus,
)


class TestMetricsRegistry:
    """Tests for MetricsRegistry class."""

    def test_counter(self):
        registry = MetricsRegistry()
        registry.counter("test_counter", 1)
        registry.counter("test_counter", 2)

        metric = registry.get("test_counter")
        assert metric.value == 3
        assert metric.metric_type == MetricType.COUNTER

    def test_counter_with_labels(self):
        registry = MetricsRegistry()
        registry.counter("seeks", 1, {"document": "a"})
        registry.counter("seeks", 1, {"document": "b"})
        registry.counter("seeks", 2, {"document": "a"})

        # Separate entries for each label combination
        assert registry.get("seeks", {"document": "a"}).value == 3
        assert registry.get("seeks", {"document": "b"}).value == 1
        assert len(registry.get_all_metrics()) == 2

    def test_gauge(self):
        registry = MetricsRegistry()
        registry.gauge("speed", 1.0)
        registry.gauge("speed", 4.0)

        assert registry.get("speed").value == 4.0  # Last value

    def test_histogram_reports_mean(self):
        registry = MetricsRegistry()
        registry.histogram("lag", 10)
        registry.histogram("lag", 20)
        registry.histogram("lag", 30)

        assert registry.get("lag").value == 20

    def test_histogram_history_is_bounded(self):
        registry = MetricsRegistry(history_size=2)
        registry.histogram("lag", 100)
        registry.histogram("lag", 2)
        registry.histogram("lag", 4)

        assert registry.get("lag").value == 3

    def test_help_text(self):
        registry = MetricsRegistry()
        registry.counter("test_metric", 1, help_text="A test metric")

        assert registry.get("test_metric").help_text == "A test metric"

    def test_clear(self):
        registry = MetricsRegistry()
        registry.counter("a", 1)
        registry.clear()

        assert registry.get_all_metrics() == []
        registry.counter("a", 1)
        assert registry.get("a").value == 1


class TestFormatPrometheus:
    """Tests for Prometheus text output."""

    def test_format(self):
        registry = MetricsRegistry()
        registry.counter("frames_published_total", 2, {"document": "n1"}, help_text="Frames")
        registry.counter("frames_published_total", 1, {"document": "n2"}, help_text="Frames")
        registry.gauge("playback_speed", 2.0)

        output = format_prometheus(registry.get_all_metrics())
        lines = output.splitlines()

        assert lines.count("# TYPE typelog_frames_published_total counter") == 1
        assert "# HELP typelog_frames_published_total Frames" in lines
        assert 'typelog_frames_published_total{document="n1"} 2.0' in lines
        assert 'typelog_frames_published_total{document="n2"} 1.0' in lines
        assert "# TYPE typelog_playback_speed gauge" in lines
        assert "typelog_playback_speed 2.0" in lines
        assert output.endswith("\n")

    def test_custom_prefix(self):
        registry = MetricsRegistry()
        registry.gauge("x", 1)

        assert "replay_x 1" in format_prometheus(registry.get_all_metrics(), prefix="replay")


class TestReplayMetricsCollector:
    """Tests for ReplayMetricsCollector class."""

    @pytest.fixture
    def registry(self):
        return MetricsRegistry()

    @pytest.fixture
    def collector(self, registry):
        return ReplayMetricsCollector("note-1", registry=registry)

    def test_collector_labels(self, collector):
        assert collector._labels["document"] == "note-1"

    def test_record_replay_started(self, collector, registry):
        collector.record_replay_started()
        collector.record_replay_started()

        assert registry.get("replays_started_total", {"document": "note-1"}).value == 2

    def test_record_frame_and_seek(self, collector, registry):
        collector.record_frame()
        collector.record_seek()

        assert registry.get("frames_published_total", {"document": "note-1"}).value == 1
        assert registry.get("seeks_total", {"document": "note-1"}).value == 1

    def test_update_speed(self, collector, registry):
        collector.update_speed(2.0)
        collector.update_speed(0.5)

        metric = registry.get("playback_speed", {"document": "note-1"})
        assert metric.value == 0.5
        assert metric.metric_type == MetricType.GAUGE

    def test_record_tick_lag(self, collector, registry):
        collector.record_tick_lag(4.0)
        collector.record_tick_lag(8.0)

        assert registry.get("tick_lag_ms", {"document": "note-1"}).value == 6.0

    def test_record_no_events(self, collector, registry):
        collector.record_no_events()
        assert registry.get("replays_rejected_total", {"document": "note-1"}).value == 1
