"""BDD step definitions for scrape features."""

from dataclasses import dataclass, field
from typing import Any

import pytest
from pytest_bdd import given, parsers, then, when

from cloudwatch_exporter.core.collector import CloudWatchCollector
from cloudwatch_exporter.core.encoding.prometheus import encode_families
from cloudwatch_exporter.core.errors import EnrichmentError
from cloudwatch_exporter.core.models import Datapoint, MetricFamily
from tests.fakes import ELB_CONFIG, TS, FakeCloudWatchClient, FakeMetadataIndex, dims

SCRAPE_CONFIG: dict[str, Any] = {
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


@dataclass
class ScrapeScenarioContext:
    """Shared state between steps in a scrape scenario."""

    collector: CloudWatchCollector | None = None
    families: list[MetricFamily] = field(default_factory=list)
    text: str = ""


@pytest.fixture
def ctx(collector_factory) -> ScrapeScenarioContext:
    """Fresh scenario context for each test."""
    return ScrapeScenarioContext(collector=collector_factory(SCRAPE_CONFIG))


def _family(ctx: ScrapeScenarioContext, name: str) -> MetricFamily:
    matches = [f for f in ctx.families if f.name == name]
    assert matches, f"{name} missing from scrape"
    return matches[0]


# === Given ===
@given(
    parsers.parse(
        'a load balancer "{name}" reporting a request count sum of {value:d}'
    )
)
def step_load_balancer(cloudwatch: FakeCloudWatchClient, name: str, value: int) -> None:
    lb = dims(LoadBalancerName=name)
    cloudwatch.add_metrics("AWS/ELB", "RequestCount", [lb])
    cloudwatch.add_datapoints(
        "AWS/ELB", "RequestCount", lb, Datapoint(timestamp=TS, sum=float(value))
    )


@given(parsers.parse('the metadata index tags "{name}" with Environment "{env}"'))
def step_index_tags(metadata_index: FakeMetadataIndex, name: str, env: str) -> None:
    metadata_index.documents[name] = [{"tags.Environment": env}]


@given("the metadata index is unreachable")
def step_index_down(metadata_index: FakeMetadataIndex) -> None:
    metadata_index.error = EnrichmentError("connection refused")


@given("CloudWatch rejects every request")
def step_cloudwatch_down(cloudwatch: FakeCloudWatchClient) -> None:
    cloudwatch.list_error = PermissionError("AccessDenied")


# === When ===
@when("Prometheus scrapes the exporter")
def step_scrape(ctx: ScrapeScenarioContext) -> None:
    ctx.families = ctx.collector.collect()
    ctx.text = encode_families(ctx.families)


# === Then ===
@then(parsers.parse('the exposition contains "{name}" with value {value:g}'))
def step_exposition_value(ctx: ScrapeScenarioContext, name: str, value: float) -> None:
    assert _family(ctx, name).samples[0].value == value
    assert f"# TYPE {name} gauge" in ctx.text


@then(parsers.parse('the sample has label "{label}" set to "{value}"'))
def step_sample_label(ctx: ScrapeScenarioContext, label: str, value: str) -> None:
    sample = _family(ctx, "aws_elb_request_count_sum").samples[0]
    assert sample.labels[label] == value


@then(parsers.parse("the scrape error gauge is {value:d}"))
def step_scrape_error(ctx: ScrapeScenarioContext, value: int) -> None:
    assert _family(ctx, "cloudwatch_exporter_scrape_error").samples[0].value == value


@then(parsers.parse("CloudWatch received {count:d} requests in total"))
def step_request_total(
    ctx: ScrapeScenarioContext, cloudwatch: FakeCloudWatchClient, count: int
) -> None:
    assert _family(ctx, "cloudwatch_requests_total").samples[0].value == count
    assert len(cloudwatch.list_calls) + len(cloudwatch.statistics_calls) == count
