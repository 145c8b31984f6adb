"""Tests for the in-process metrics registry."""

from __future__ import annotations

import pytest

from app.monitoring.registry import MetricsRegistry


def test_counter_render():
    registry = MetricsRegistry()
    counter = registry.counter("events_total", "Events seen.", label_names=("event",))

    counter.labels("new-message").inc()
    counter.labels("new-message").inc(2)
    counter.labels('quo"te').inc()

    assert counter.value("new-message") == 3
    assert registry.render().splitlines() == [
        "# HELP events_total Events seen.",
        "# TYPE events_total counter",
        'events_total{event="new-message"} 3',
        'events_total{event="quo\\"te"} 1',
    ]


def test_empty_metric_renders_zero():
    registry = MetricsRegistry()
    registry.gauge("connections", "Open sockets.")

    assert registry.render().splitlines()[-1] == "connections 0"


def test_gauge_moves_both_ways():
    registry = MetricsRegistry()
    gauge = registry.gauge("connections", "Open sockets.", label_names=("scope",))

    gauge.labels("channels").inc()
    gauge.labels("channels").inc()
    gauge.labels("channels").dec()
    assert gauge.value("channels") == 1

    gauge.labels("channels").set(5)
    assert gauge.value("channels") == 5


def test_counters_only_increase():
    registry = MetricsRegistry()
    counter = registry.counter("total", "Total.")

    with pytest.raises(ValueError):
        counter.labels().inc(-1)
    with pytest.raises(AttributeError):
        counter.labels().dec()


def test_label_arity_and_duplicate_names_are_checked():
    registry = MetricsRegistry()
    counter = registry.counter("total", "Total.", label_names=("a",))

    with pytest.raises(ValueError):
        counter.labels()
    with pytest.raises(ValueError):
        registry.counter("total", "Again.")
