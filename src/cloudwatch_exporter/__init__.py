"""Expose CloudWatch metrics, enriched with resource tags, to Prometheus."""

from cloudwatch_exporter.core.cache import CacheRegistry, configure_engine_caches
from cloudwatch_exporter.core.collector import CloudWatchCollector
from cloudwatch_exporter.core.config import load_config
from cloudwatch_exporter.core.encoding.prometheus import encode_families
from cloudwatch_exporter.core.errors import (
    ConfigurationError,
    DiscoveryError,
    EnrichmentError,
    ExporterError,
    FetchError,
)
from cloudwatch_exporter.core.models import (
    ConfigSnapshot,
    Datapoint,
    Dimension,
    MetricFamily,
    MetricRule,
    MetricSample,
    ResourceMapping,
)
from cloudwatch_exporter.core.store import ConfigStore

__all__ = [
    "CacheRegistry",
    "CloudWatchCollector",
    "ConfigSnapshot",
    "ConfigStore",
    "ConfigurationError",
    "Datapoint",
    "Dimension",
    "DiscoveryError",
    "EnrichmentError",
    "ExporterError",
    "FetchError",
    "MetricFamily",
    "MetricRule",
    "MetricSample",
    "ResourceMapping",
    "configure_engine_caches",
    "encode_families",
    "load_config",
]
