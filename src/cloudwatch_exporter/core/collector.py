"""Per-scrape coordination of discovery, fetch, enrichment and naming."""

import logging

from cloudwatch_exporter.core.cache import (
    DIMENSIONS_CACHE,
    METRICS_CACHE,
    TAGS_CACHE,
    CacheRegistry,
    CacheStats,
    configure_engine_caches,
)
from cloudwatch_exporter.core.dimensions import DimensionResolver
from cloudwatch_exporter.core.logs import log_exception, timed
from cloudwatch_exporter.core.metrics import (
    RequestCounter,
    counter,
    gauge,
    labeled_family,
)
from cloudwatch_exporter.core.models import ConfigSnapshot, MetricFamily, MetricRule
from cloudwatch_exporter.core.naming import label_name
from cloudwatch_exporter.core.ports import MetadataIndexPort
from cloudwatch_exporter.core.samples import RuleSamples, dimension_labels
from cloudwatch_exporter.core.statistics import StatisticFetcher
from cloudwatch_exporter.core.store import ConfigStore
from cloudwatch_exporter.core.tags import TagEnricher, find_resource_name

logger = logging.getLogger(__name__)

REPORTED_CACHES = (DIMENSIONS_CACHE, METRICS_CACHE, TAGS_CACHE)


class CloudWatchCollector:
    """Produces the exposition families for one scrape.

    Args:
        store: Holder of the active configuration.
        metadata_index: Metadata index adapter used for tag enrichment.
        caches: Cache registry. A fresh one with the engine caches configured
            is created when omitted.
        requests: Provider request counter, shared by resolver and fetcher.
    """

    def __init__(
        self,
        store: ConfigStore,
        metadata_index: MetadataIndexPort | None = None,
        caches: CacheRegistry | None = None,
        requests: RequestCounter | None = None,
    ) -> None:
        self.store = store
        self.caches = caches or configure_engine_caches(CacheRegistry())
        self.requests = requests or RequestCounter()
        self.resolver = DimensionResolver(self.caches, self.requests)
        self.fetcher = StatisticFetcher(self.caches, self.requests)
        self.enricher = TagEnricher(metadata_index, self.caches)

    def collect(self, namespace: str | None = None) -> list[MetricFamily]:
        """Scrape every rule (or those of one namespace) and add meta families.

        Never raises: a failure stops the pass, keeps the families already
        produced and sets cloudwatch_exporter_scrape_error to 1.
        """
        families: list[MetricFamily] = []
        error = 0.0
        with timed("CloudWatch scrape", namespace=namespace or "") as result:
            try:
                self._scrape(self.store.current(), namespace, families)
            except Exception:
                error = 1.0
                log_exception("CloudWatch scrape failed", level=logging.WARNING)
        families.extend(self._meta_families(result.elapsed_seconds, error))
        return families

    def _scrape(
        self,
        config: ConfigSnapshot,
        namespace: str | None,
        families: list[MetricFamily],
    ) -> None:
        for rule in config.rules:
            if namespace is not None and namespace.lower() != rule.namespace.lower():
                continue
            families.extend(self._scrape_rule(config, rule))

    def _scrape_rule(
        self, config: ConfigSnapshot, rule: MetricRule
    ) -> list[MetricFamily]:
        samples = RuleSamples(rule)
        mapping = config.mappings.get(rule.namespace)
        if mapping is None:
            logger.warning("Resource mapping not configured - %s", rule.namespace)

        for dimensions in self.resolver.resolve(rule, config.client):
            datapoint = self.fetcher.fetch(rule, dimensions, config.client)
            if datapoint is None:
                continue
            labels = dimension_labels(rule, dimensions)
            if mapping is not None:
                resource_name = find_resource_name(labels, mapping)
                for tag, value in self.enricher.enrich(mapping, resource_name).items():
                    labels[label_name(tag)] = value
            samples.add(datapoint, labels)
        return samples.families()

    def _meta_families(self, duration: float, error: float) -> list[MetricFamily]:
        stats: dict[str, CacheStats] = {
            name: self.caches.stats(name) for name in REPORTED_CACHES
        }
        return [
            gauge(
                "cloudwatch_exporter_scrape_duration_seconds",
                "Time this CloudWatch scrape took, in seconds.",
                duration,
            ),
            gauge(
                "cloudwatch_exporter_scrape_error",
                "Non-zero if this scrape failed.",
                error,
            ),
            labeled_family(
                "cloudwatch_exporter_cache_usage",
                "gauge",
                "Number of entries held by the cache.",
                "cache_name",
                [(name, s.size) for name, s in stats.items()],
            ),
            labeled_family(
                "cloudwatch_exporter_cache_hitratio",
                "gauge",
                "Cache Hit Ratio.",
                "cache_name",
                [(name, s.hit_ratio) for name, s in stats.items()],
            ),
            labeled_family(
                "cloudwatch_exporter_cache_hitcount",
                "counter",
                "Cache Hit Count.",
                "cache_name",
                [(name, s.hit_count) for name, s in stats.items()],
            ),
            labeled_family(
                "cloudwatch_exporter_cache_misscount",
                "counter",
                "Cache Miss Count.",
                "cache_name",
                [(name, s.miss_count) for name, s in stats.items()],
            ),
            counter(
                "cloudwatch_requests_total",
                "API requests made to CloudWatch",
                self.requests.value,
            ),
        ]
