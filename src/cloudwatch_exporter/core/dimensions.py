"""Discovery of the concrete dimension sets a rule should query."""

import logging

from cloudwatch_exporter.core.cache import DIMENSIONS_CACHE, CacheRegistry, cache_key
from cloudwatch_exporter.core.errors import DiscoveryError
from cloudwatch_exporter.core.metrics import RequestCounter
from cloudwatch_exporter.core.models import DimensionSet, MetricRule
from cloudwatch_exporter.core.ports import CloudWatchClientPort

logger = logging.getLogger(__name__)


class DimensionResolver:
    """Lists a rule's metrics from the provider and applies its selection.

    Results are cached per namespace and metric name in the dimensions cache.

    Args:
        caches: Registry holding the dimensions cache.
        requests: Counter incremented once per provider call.
    """

    def __init__(self, caches: CacheRegistry, requests: RequestCounter) -> None:
        self._caches = caches
        self._requests = requests

    def resolve(
        self, rule: MetricRule, client: CloudWatchClientPort
    ) -> list[DimensionSet]:
        """Return the dimension sets to fetch statistics for.

        A rule without dimensions is a namespace-level metric and yields
        exactly one empty dimension set.

        Raises:
            DiscoveryError: If a provider call fails.
        """
        key = cache_key(rule.namespace, rule.metric_name)
        cached = self._caches.get(DIMENSIONS_CACHE, key)
        if cached is not None:
            return cached
        if not rule.dimensions:
            return [()]

        found: list[DimensionSet] = []
        next_token: str | None = None
        while True:
            total = self._requests.inc()
            logger.debug("CloudWatch requests so far: %d", total)
            try:
                page = client.list_metrics(
                    rule.namespace, rule.metric_name, rule.dimensions, next_token
                )
            except Exception as e:
                raise DiscoveryError(
                    f"Listing {rule.namespace} {rule.metric_name} failed: {e}"
                ) from e
            for dimensions in page.metrics:
                # The provider also returns metrics carrying extra dimensions.
                if len(dimensions) != len(rule.dimensions):
                    continue
                if rule.select.accepts(dimensions):
                    found.append(tuple(dimensions))
            next_token = page.next_token
            if not next_token:
                break

        self._caches.put(DIMENSIONS_CACHE, key, found)
        return found
