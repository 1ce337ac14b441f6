"""Turning datapoints into named, labeled exposition families."""

from cloudwatch_exporter.core.models import (
    Datapoint,
    DimensionSet,
    MetricFamily,
    MetricRule,
    MetricSample,
)
from cloudwatch_exporter.core.naming import label_name, safe_name, snake_case

DYNAMODB_NAMESPACE = "AWS/DynamoDB"
DYNAMODB_INDEX_DIMENSION = "GlobalSecondaryIndexName"

# DynamoDB reports these under the same name for tables and their indexes.
BROKEN_DYNAMODB_METRICS = frozenset(
    {
        "ConsumedReadCapacityUnits",
        "ConsumedWriteCapacityUnits",
        "ProvisionedReadCapacityUnits",
        "ProvisionedWriteCapacityUnits",
        "ReadThrottleEvents",
        "WriteThrottleEvents",
    }
)

# (datapoint attribute, statistic name, family suffix)
STANDARD_STATISTICS = (
    ("sum", "Sum", "_sum"),
    ("sample_count", "SampleCount", "_sample_count"),
    ("minimum", "Minimum", "_minimum"),
    ("maximum", "Maximum", "_maximum"),
    ("average", "Average", "_average"),
)


def job_name(rule: MetricRule) -> str:
    return safe_name(rule.namespace.lower())


def base_name(rule: MetricRule) -> str:
    """Return the family name prefix for a rule."""
    name = safe_name(rule.namespace.lower() + "_" + snake_case(rule.metric_name))
    if (
        rule.namespace == DYNAMODB_NAMESPACE
        and DYNAMODB_INDEX_DIMENSION in rule.dimensions
        and rule.metric_name in BROKEN_DYNAMODB_METRICS
    ):
        name += "_index"
    return name


def help_text(rule: MetricRule, unit: str | None, statistic: str) -> str:
    if rule.help is not None:
        return rule.help
    return (
        f"CloudWatch metric {rule.namespace} {rule.metric_name}"
        f" Dimensions: [{', '.join(rule.dimensions)}]"
        f" Statistic: {statistic} Unit: {unit}"
    )


def dimension_labels(rule: MetricRule, dimensions: DimensionSet) -> dict[str, str]:
    """Return job, instance and one label per dimension, in that order."""
    labels = {"job": job_name(rule), "instance": ""}
    for dimension in dimensions:
        labels[label_name(dimension.name)] = dimension.value
    return labels


class RuleSamples:
    """Accumulates one rule's samples across its dimension sets.

    Args:
        rule: The rule the samples belong to.
    """

    def __init__(self, rule: MetricRule) -> None:
        self.rule = rule
        self.base_name = base_name(rule)
        self.unit: str | None = None
        self._standard: dict[str, list[MetricSample]] = {
            attr: [] for attr, _, _ in STANDARD_STATISTICS
        }
        self._extended: dict[str, list[MetricSample]] = {}

    def add(self, datapoint: Datapoint, labels: dict[str, str]) -> None:
        """Add one sample per populated statistic of the datapoint."""
        self.unit = datapoint.unit
        for attr, _, suffix in STANDARD_STATISTICS:
            value = getattr(datapoint, attr)
            if value is not None:
                self._standard[attr].append(
                    MetricSample(self.base_name + suffix, float(value), dict(labels))
                )
        for statistic, value in datapoint.extended_statistics.items():
            name = self.base_name + "_" + label_name(statistic)
            self._extended.setdefault(statistic, []).append(
                MetricSample(name, float(value), dict(labels))
            )

    def families(self) -> list[MetricFamily]:
        """Return one gauge family per statistic that produced samples."""
        families = [
            MetricFamily(
                name=self.base_name + suffix,
                type="gauge",
                help=help_text(self.rule, self.unit, statistic),
                samples=self._standard[attr],
            )
            for attr, statistic, suffix in STANDARD_STATISTICS
            if self._standard[attr]
        ]
        for statistic, samples in self._extended.items():
            families.append(
                MetricFamily(
                    name=self.base_name + "_" + label_name(statistic),
                    type="gauge",
                    help=help_text(self.rule, self.unit, statistic),
                    samples=samples,
                )
            )
        return families
