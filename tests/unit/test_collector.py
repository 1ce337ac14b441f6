"""Tests for CloudWatchCollector scrape passes."""

import logging
from typing import Any

import pytest

from cloudwatch_exporter.core.collector import CloudWatchCollector
from cloudwatch_exporter.core.errors import ConfigurationError, EnrichmentError
from cloudwatch_exporter.core.models import ConfigSnapshot, Datapoint, MetricFamily
from cloudwatch_exporter.core.store import ConfigStore
from cloudwatch_exporter.core.tags import UNTAGGED
from tests.fakes import (
    ELB_CONFIG,
    TS,
    FakeCloudWatchClient,
    FakeMetadataIndex,
    dims,
)

pytestmark = [pytest.mark.core, pytest.mark.tier(1)]

TAGGED_ELB_CONFIG: dict[str, Any] = {
    **ELB_CONFIG,
    "mappings": [
        {
            "name": "AWS/ELB",
            "id_field": "LoadBalancerName",
            "es_id_field": "name",
            "lookup_url": "elb",
        }
    ],
}

TWO_NAMESPACE_CONFIG: dict[str, Any] = {
    "region": "us-east-1",
    "metrics": [
        {
            "aws_namespace": "AWS/ELB",
            "aws_metric_name": "RequestCount",
            "aws_statistics": ["Sum"],
        },
        {
            "aws_namespace": "AWS/SQS",
            "aws_metric_name": "NumberOfMessagesSent",
            "aws_statistics": ["Sum"],
        },
    ],
}


def _by_name(families: list[MetricFamily]) -> dict[str, MetricFamily]:
    return {family.name: family for family in families}


def _meta_value(families: list[MetricFamily], name: str) -> float:
    return _by_name(families)[name].samples[0].value


@pytest.fixture
def elb_cloudwatch(cloudwatch: FakeCloudWatchClient) -> FakeCloudWatchClient:
    """CloudWatch fake with one load balancer reporting 42 requests."""
    lb = dims(LoadBalancerName="my-lb")
    cloudwatch.add_metrics("AWS/ELB", "RequestCount", [lb])
    cloudwatch.add_datapoints(
        "AWS/ELB",
        "RequestCount",
        lb,
        Datapoint(timestamp=TS, unit="Count", sum=42.0),
    )
    return cloudwatch


class TestCollect:
    """Tests for CloudWatchCollector.collect()."""

    @pytest.mark.tra("Collector.Collect.EndToEnd")
    def test_request_count_sample(
        self, collector_factory, elb_cloudwatch: FakeCloudWatchClient
    ) -> None:
        """One load balancer with Sum 42 yields one labeled sample."""
        families = _by_name(collector_factory().collect())
        family = families["aws_elb_request_count_sum"]
        (sample,) = family.samples
        assert sample.value == 42.0
        assert sample.labels == {
            "job": "aws_elb",
            "instance": "",
            "load_balancer_name": "my-lb",
        }

    def test_meta_families_always_present(self, collector_factory) -> None:
        """Every scrape reports duration, error, cache and request families."""
        names = [f.name for f in collector_factory().collect()]
        assert names == [
            "cloudwatch_exporter_scrape_duration_seconds",
            "cloudwatch_exporter_scrape_error",
            "cloudwatch_exporter_cache_usage",
            "cloudwatch_exporter_cache_hitratio",
            "cloudwatch_exporter_cache_hitcount",
            "cloudwatch_exporter_cache_misscount",
            "cloudwatch_requests_total",
        ]

    def test_cache_families_have_one_sample_per_cache(
        self, collector_factory
    ) -> None:
        families = _by_name(collector_factory().collect())
        usage = families["cloudwatch_exporter_cache_usage"]
        assert [s.labels["cache_name"] for s in usage.samples] == [
            "dimensions",
            "metrics",
            "tags",
        ]
        assert families["cloudwatch_exporter_cache_hitcount"].type == "counter"

    def test_second_scrape_is_served_from_cache(
        self, collector_factory, elb_cloudwatch: FakeCloudWatchClient
    ) -> None:
        """Within the TTLs a repeat scrape makes no provider calls."""
        collector = collector_factory()
        collector.collect()
        families = collector.collect()
        assert len(elb_cloudwatch.list_calls) == 1
        assert len(elb_cloudwatch.statistics_calls) == 1
        assert _meta_value(families, "cloudwatch_requests_total") == 2
        hits = _by_name(families)["cloudwatch_exporter_cache_hitcount"]
        assert [s.value for s in hits.samples][:2] == [1, 1]

    @pytest.mark.tra("Collector.Collect.NamespaceFilter")
    def test_namespace_filter_is_case_insensitive(
        self, collector_factory, cloudwatch: FakeCloudWatchClient
    ) -> None:
        """Only rules of the requested namespace are scraped."""
        collector = collector_factory(TWO_NAMESPACE_CONFIG)
        collector.collect(namespace="aws/sqs")
        assert [c.namespace for c in cloudwatch.statistics_calls] == ["AWS/SQS"]

    def test_series_without_datapoints_are_skipped(
        self, collector_factory, cloudwatch: FakeCloudWatchClient
    ) -> None:
        cloudwatch.add_metrics(
            "AWS/ELB", "RequestCount", [dims(LoadBalancerName="idle")]
        )
        families = collector_factory().collect()
        assert not any(f.name.startswith("aws_elb") for f in families)
        assert _meta_value(families, "cloudwatch_exporter_scrape_error") == 0

    @pytest.mark.tra("Collector.Collect.PartialOnError")
    def test_failure_sets_error_and_keeps_partial_results(
        self, collector_factory, cloudwatch: FakeCloudWatchClient
    ) -> None:
        """A fetch failure on the second rule keeps the first rule's families."""
        config = {
            **TWO_NAMESPACE_CONFIG,
            "metrics": [
                {**TWO_NAMESPACE_CONFIG["metrics"][0]},
                {
                    "aws_namespace": "AWS/SQS",
                    "aws_metric_name": "NumberOfMessagesSent",
                    "aws_dimensions": ["QueueName"],
                },
            ],
        }
        cloudwatch.add_datapoints(
            "AWS/ELB", "RequestCount", (), Datapoint(timestamp=TS, sum=7.0)
        )
        collector = collector_factory(config)
        cloudwatch.list_error = ConnectionError("throttled")
        families = _by_name(collector.collect())
        assert families["aws_elb_request_count_sum"].samples[0].value == 7.0
        assert families["cloudwatch_exporter_scrape_error"].samples[0].value == 1

    def test_failure_is_logged(
        self,
        collector_factory,
        cloudwatch: FakeCloudWatchClient,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        cloudwatch.list_error = ConnectionError("throttled")
        with caplog.at_level(logging.WARNING, logger="cloudwatch_exporter"):
            collector_factory().collect()
        assert "CloudWatch scrape failed" in caplog.text

    def test_failed_reload_keeps_previous_rules(
        self, config_factory, caches, elb_cloudwatch: FakeCloudWatchClient
    ) -> None:
        """After a rejected reload scrapes still use the old rules."""
        documents = iter([ELB_CONFIG, {"region": "us-east-1"}])

        def loader() -> ConfigSnapshot:
            return config_factory(next(documents))

        collector = CloudWatchCollector(ConfigStore(loader), caches=caches)
        with pytest.raises(ConfigurationError):
            collector.store.reload()
        families = _by_name(collector.collect())
        assert "aws_elb_request_count_sum" in families


class TestCollectWithTags:
    """Tests for scrapes of namespaces with a resource mapping."""

    def test_tags_become_labels(
        self,
        collector_factory,
        elb_cloudwatch: FakeCloudWatchClient,
        metadata_index: FakeMetadataIndex,
    ) -> None:
        metadata_index.documents["my-lb"] = [
            {"tags.Environment": "prod", "accountname": "main"}
        ]
        families = _by_name(collector_factory(TAGGED_ELB_CONFIG).collect())
        labels = families["aws_elb_request_count_sum"].samples[0].labels
        assert labels["environment"] == "prod"
        assert labels["accountname"] == "main"
        assert labels["work_load"] == UNTAGGED

    def test_compound_identifier_is_shortened(
        self,
        collector_factory,
        cloudwatch: FakeCloudWatchClient,
        metadata_index: FakeMetadataIndex,
    ) -> None:
        """A net/<name>/<id> identifier is exported and looked up as <name>."""
        lb = dims(LoadBalancerName="net/my-lb/abcd")
        cloudwatch.add_metrics("AWS/ELB", "RequestCount", [lb])
        cloudwatch.add_datapoints(
            "AWS/ELB", "RequestCount", lb, Datapoint(timestamp=TS, sum=1.0)
        )
        families = _by_name(collector_factory(TAGGED_ELB_CONFIG).collect())
        labels = families["aws_elb_request_count_sum"].samples[0].labels
        assert labels["load_balancer_name"] == "my-lb"
        assert metadata_index.calls == [("name", "my-lb", "elb")]

    @pytest.mark.tra("Collector.Collect.EnrichmentFailure")
    def test_enrichment_failure_still_exports(
        self,
        collector_factory,
        elb_cloudwatch: FakeCloudWatchClient,
        metadata_index: FakeMetadataIndex,
    ) -> None:
        """An unreachable index gives UNTAGGED labels, not a scrape error."""
        metadata_index.error = EnrichmentError("connection refused")
        families = _by_name(collector_factory(TAGGED_ELB_CONFIG).collect())
        labels = families["aws_elb_request_count_sum"].samples[0].labels
        assert labels["environment"] == UNTAGGED
        assert families["cloudwatch_exporter_scrape_error"].samples[0].value == 0

    def test_collector_builds_default_caches(self, config_factory) -> None:
        """Without an explicit registry the engine caches are configured."""
        collector = CloudWatchCollector(ConfigStore(config_factory))
        assert collector.caches.names() == ["dimensions", "metrics", "tags"]
