"""Helpers for creating MetricFamily objects and counting provider requests."""

import threading
from collections.abc import Iterable

from cloudwatch_exporter.core.models import MetricFamily, MetricSample


def gauge(
    name: str,
    help: str,
    value: float,
    labels: dict[str, str] | None = None,
) -> MetricFamily:
    """Create a gauge family holding a single sample.

    Args:
        name: Family and sample name (e.g., "cloudwatch_exporter_scrape_error")
        help: Help text
        value: Current gauge value
        labels: Optional sample labels

    Returns:
        MetricFamily of type gauge with one sample
    """
    return MetricFamily(
        name=name,
        type="gauge",
        help=help,
        samples=[MetricSample(name=name, value=value, labels=labels or {})],
    )


def counter(
    name: str,
    help: str,
    value: float,
    labels: dict[str, str] | None = None,
) -> MetricFamily:
    """Create a counter family holding a single sample.

    Args:
        name: Family and sample name (e.g., "cloudwatch_requests_total")
        help: Help text
        value: Current counter total
        labels: Optional sample labels

    Returns:
        MetricFamily of type counter with one sample
    """
    return MetricFamily(
        name=name,
        type="counter",
        help=help,
        samples=[MetricSample(name=name, value=value, labels=labels or {})],
    )


def labeled_family(
    name: str,
    type: str,
    help: str,
    label: str,
    values: Iterable[tuple[str, float]],
) -> MetricFamily:
    """Create a family with one sample per value of a single label.

    Args:
        name: Family and sample name
        type: "gauge" or "counter"
        help: Help text
        label: Label name distinguishing the samples (e.g., "cache_name")
        values: (label value, sample value) pairs

    Returns:
        MetricFamily with one sample per pair, in the given order
    """
    return MetricFamily(
        name=name,
        type=type,
        help=help,
        samples=[
            MetricSample(name=name, value=value, labels={label: label_value})
            for label_value, value in values
        ],
    )


class RequestCounter:
    """Thread-safe running total of provider API requests."""

    def __init__(self) -> None:
        self._value = 0
        self._lock = threading.Lock()

    def inc(self, amount: int = 1) -> int:
        """Increase the total and return the new value."""
        with self._lock:
            self._value += amount
            return self._value

    @property
    def value(self) -> int:
        with self._lock:
            return self._value
