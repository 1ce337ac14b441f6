"""Fetching the newest datapoint for one rule and dimension set."""

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from cloudwatch_exporter.core.cache import METRICS_CACHE, CacheRegistry, cache_key
from cloudwatch_exporter.core.errors import FetchError
from cloudwatch_exporter.core.metrics import RequestCounter
from cloudwatch_exporter.core.models import (
    Datapoint,
    DimensionSet,
    MetricRule,
    newest_datapoint,
)
from cloudwatch_exporter.core.ports import CloudWatchClientPort

logger = logging.getLogger(__name__)

# Cached in place of a datapoint when the provider returned none, so empty
# series are not re-queried until the entry expires.
NO_DATAPOINT = object()


def _now() -> datetime:
    return datetime.now(UTC)


def statistics_key(rule: MetricRule, dimensions: DimensionSet) -> str:
    """Return the metrics cache key for a rule and dimension set."""
    key = cache_key(
        rule.namespace,
        rule.metric_name,
        *rule.statistics,
        *rule.extended_statistics,
    )
    return key + "".join(d.name + d.value for d in dimensions)


def query_window(rule: MetricRule, now: datetime) -> tuple[datetime, datetime]:
    """Return (start, end) for [now - delay - range, now - delay]."""
    end = now - timedelta(seconds=rule.delay_seconds)
    start = end - timedelta(seconds=rule.range_seconds)
    return start, end


class StatisticFetcher:
    """Retrieves and caches the most recent datapoint of a time series.

    Args:
        caches: Registry holding the metrics cache.
        requests: Counter incremented once per provider call.
        now: Current time source, defaults to an aware UTC datetime.
    """

    def __init__(
        self,
        caches: CacheRegistry,
        requests: RequestCounter,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._caches = caches
        self._requests = requests
        self._now = now or _now

    def fetch(
        self,
        rule: MetricRule,
        dimensions: DimensionSet,
        client: CloudWatchClientPort,
    ) -> Datapoint | None:
        """Return the newest datapoint in the rule's window, or None.

        Raises:
            FetchError: If the provider call fails.
        """
        key = statistics_key(rule, dimensions)
        cached = self._caches.get(METRICS_CACHE, key)
        if cached is not None:
            return None if cached is NO_DATAPOINT else cached

        start, end = query_window(rule, self._now())
        self._requests.inc()
        try:
            datapoints = client.get_metric_statistics(
                rule.namespace,
                rule.metric_name,
                dimensions,
                rule.statistics,
                rule.extended_statistics,
                rule.period_seconds,
                start,
                end,
            )
        except Exception as e:
            raise FetchError(
                f"Fetching {rule.namespace} {rule.metric_name} failed: {e}"
            ) from e

        newest = newest_datapoint(datapoints)
        self._caches.put(
            METRICS_CACHE, key, newest if newest is not None else NO_DATAPOINT
        )
        return newest
