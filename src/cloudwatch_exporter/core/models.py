"""Core domain models for the CloudWatch exporter."""

import re
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class Dimension:
    """A name/value pair qualifying a metric to a specific resource.

    Attributes:
        name: Dimension name (e.g., LoadBalancerName).
        value: Dimension value (e.g., my-lb).
    """

    name: str
    value: str


# One concrete time series within a namespace/metric, in provider order.
DimensionSet = tuple[Dimension, ...]


@dataclass(frozen=True)
class Datapoint:
    """One aggregated CloudWatch observation.

    Attributes:
        timestamp: Start of the aggregation period.
        unit: Unit reported by the provider (e.g., Count, Seconds).
        sum: Sum statistic, if requested.
        sample_count: SampleCount statistic, if requested.
        minimum: Minimum statistic, if requested.
        maximum: Maximum statistic, if requested.
        average: Average statistic, if requested.
        extended_statistics: Extended statistic name to value (e.g., p99).
    """

    timestamp: datetime
    unit: str | None = None
    sum: float | None = None
    sample_count: float | None = None
    minimum: float | None = None
    maximum: float | None = None
    average: float | None = None
    extended_statistics: dict[str, float] = field(default_factory=dict)


def newest_datapoint(datapoints: Iterable[Datapoint]) -> Datapoint | None:
    """Return the datapoint with the greatest timestamp.

    Providers do not guarantee ordering, so ties keep the first one seen.

    Args:
        datapoints: Datapoints returned for a single query.

    Returns:
        The newest datapoint, or None when there are none.
    """
    newest: Datapoint | None = None
    for datapoint in datapoints:
        if newest is None or datapoint.timestamp > newest.timestamp:
            newest = datapoint
    return newest


class DimensionSelect(ABC):
    """Selection policy applied to discovered dimension sets."""

    @abstractmethod
    def accepts(self, dimensions: DimensionSet) -> bool:
        """Return True if the dimension set should be queried."""


@dataclass(frozen=True)
class NoSelection(DimensionSelect):
    """Accepts every discovered dimension set."""

    def accepts(self, dimensions: DimensionSet) -> bool:
        return True


@dataclass(frozen=True)
class ExactSelection(DimensionSelect):
    """Accepts dimension sets whose selected dimensions hold allowed values.

    Dimensions not named in ``allowed`` are unconstrained.
    """

    allowed: Mapping[str, frozenset[str]]

    def accepts(self, dimensions: DimensionSet) -> bool:
        for dimension in dimensions:
            values = self.allowed.get(dimension.name)
            if values is not None and dimension.value not in values:
                return False
        return True


@dataclass(frozen=True)
class RegexSelection(DimensionSelect):
    """Accepts dimension sets whose selected dimensions fully match a pattern."""

    patterns: Mapping[str, tuple[re.Pattern[str], ...]]

    def accepts(self, dimensions: DimensionSet) -> bool:
        for dimension in dimensions:
            patterns = self.patterns.get(dimension.name)
            if patterns is None:
                continue
            if not any(p.fullmatch(dimension.value) for p in patterns):
                return False
        return True


@dataclass(frozen=True)
class MetricRule:
    """One exposed metric family definition.

    Attributes:
        namespace: CloudWatch namespace (e.g., AWS/ELB).
        metric_name: CloudWatch metric name (e.g., RequestCount).
        dimensions: Dimension names to discover, in configured order.
        select: Selection policy for discovered dimension sets.
        statistics: Standard statistics to request.
        extended_statistics: Extended statistics (percentiles) to request.
        period_seconds: Aggregation period.
        range_seconds: Width of the query window.
        delay_seconds: How far the window end lags behind now.
        help: Optional help text override.
    """

    namespace: str
    metric_name: str
    dimensions: tuple[str, ...] = ()
    select: DimensionSelect = field(default_factory=NoSelection)
    statistics: tuple[str, ...] = ()
    extended_statistics: tuple[str, ...] = ()
    period_seconds: int = 60
    range_seconds: int = 120
    delay_seconds: int = 60
    help: str | None = None


@dataclass(frozen=True)
class ResourceMapping:
    """Links a namespace to how its resources are looked up for tags.

    Attributes:
        name: Namespace this mapping applies to.
        id_field: Dimension carrying the resource identifier.
        es_id_field: Identifier field name in the metadata index.
        lookup_url: Metadata index path for this resource type.
        additional_labels: Extra tag names to fetch besides the fixed vocabulary.
    """

    name: str
    id_field: str
    es_id_field: str
    lookup_url: str
    additional_labels: tuple[str, ...] = ()


@dataclass(frozen=True)
class ConfigSnapshot:
    """The active configuration, swapped as one unit on reload.

    Attributes:
        rules: Metric rules in configured order.
        mappings: Resource mappings keyed by namespace.
        client: Provider client used for every call in a scrape.
        region: Provider region the client targets.
        role_arn: Delegated identity assumed by the client, if any.
    """

    rules: tuple[MetricRule, ...]
    mappings: Mapping[str, ResourceMapping]
    client: Any
    region: str = ""
    role_arn: str | None = None


@dataclass(frozen=True)
class MetricSample:
    """A single exposition sample.

    Attributes:
        name: Sample name (e.g., aws_elb_request_count_sum).
        value: The sample value.
        labels: Ordered label name to value pairs.
    """

    name: str
    value: float
    labels: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class MetricFamily:
    """A named group of samples sharing type and help text.

    Attributes:
        name: Family name.
        type: Exposition type, "gauge" or "counter".
        help: Help text.
        samples: Samples belonging to the family.
    """

    name: str
    type: str
    help: str
    samples: list[MetricSample] = field(default_factory=list)
