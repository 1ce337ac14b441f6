"""Validation of decoded exporter configuration into a ConfigSnapshot.

The decoded document is the YAML (or any other surface syntax) already parsed
into plain mappings and lists. Validation is all-or-nothing: either a complete
snapshot is returned or ConfigurationError is raised.
"""

import logging
import re
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any

from cloudwatch_exporter.core.errors import ConfigurationError
from cloudwatch_exporter.core.models import (
    ConfigSnapshot,
    DimensionSelect,
    ExactSelection,
    MetricRule,
    NoSelection,
    RegexSelection,
    ResourceMapping,
)

logger = logging.getLogger(__name__)

DEFAULT_PERIOD_SECONDS = 60
DEFAULT_RANGE_SECONDS = 120
DEFAULT_DELAY_SECONDS = 60

DEFAULT_STATISTICS = ("Sum", "SampleCount", "Minimum", "Maximum", "Average")

# (region, role_arn) -> provider client
ClientFactory = Callable[[str, str | None], Any]


def _string_list(value: Any, key: str) -> tuple[str, ...]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigurationError(f"{key} must be a list of strings")
    return tuple(value)


def _seconds(value: Any, key: str, allow_zero: bool = False) -> int:
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise ConfigurationError(f"{key} must be a number of seconds")
    seconds = int(value)
    if seconds < 0 or (seconds == 0 and not allow_zero):
        raise ConfigurationError(f"{key} must be positive, got {value}")
    return seconds


def _select_map(value: Any, key: str) -> dict[str, tuple[str, ...]]:
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"{key} must map dimension names to lists")
    return {str(name): _string_list(allowed, key) for name, allowed in value.items()}


def _parse_select(raw: Mapping[str, Any]) -> DimensionSelect:
    has_exact = "aws_dimension_select" in raw
    has_regex = "aws_dimension_select_regex" in raw
    if has_exact and has_regex:
        raise ConfigurationError(
            "Must not provide aws_dimension_select and "
            "aws_dimension_select_regex at the same time"
        )
    if has_exact:
        exact = _select_map(raw["aws_dimension_select"], "aws_dimension_select")
        return ExactSelection(
            MappingProxyType({k: frozenset(v) for k, v in exact.items()})
        )
    if has_regex:
        regex = _select_map(
            raw["aws_dimension_select_regex"], "aws_dimension_select_regex"
        )
        compiled: dict[str, tuple[re.Pattern[str], ...]] = {}
        for name, patterns in regex.items():
            try:
                compiled[name] = tuple(re.compile(p) for p in patterns)
            except re.error as e:
                raise ConfigurationError(
                    f"Invalid regex in aws_dimension_select_regex for {name}: {e}"
                ) from e
        return RegexSelection(MappingProxyType(compiled))
    return NoSelection()


def _parse_rule(
    raw: Any, period: int, range_: int, delay: int
) -> MetricRule:
    if not isinstance(raw, Mapping):
        raise ConfigurationError("Each metrics entry must be a mapping")
    if not raw.get("aws_namespace") or not raw.get("aws_metric_name"):
        raise ConfigurationError("Must provide aws_namespace and aws_metric_name")

    # Standard statistics are only defaulted when neither list is configured.
    if "aws_statistics" in raw:
        statistics = _string_list(raw["aws_statistics"], "aws_statistics")
    elif "aws_extended_statistics" not in raw:
        statistics = DEFAULT_STATISTICS
    else:
        statistics = ()
    extended: tuple[str, ...] = ()
    if "aws_extended_statistics" in raw:
        extended = _string_list(
            raw["aws_extended_statistics"], "aws_extended_statistics"
        )

    dimensions: tuple[str, ...] = ()
    if raw.get("aws_dimensions") is not None:
        dimensions = _string_list(raw["aws_dimensions"], "aws_dimensions")

    help_text = raw.get("help")
    if help_text is not None and not isinstance(help_text, str):
        raise ConfigurationError("help must be a string")

    return MetricRule(
        namespace=str(raw["aws_namespace"]),
        metric_name=str(raw["aws_metric_name"]),
        dimensions=dimensions,
        select=_parse_select(raw),
        statistics=statistics,
        extended_statistics=extended,
        period_seconds=_seconds(raw.get("period_seconds", period), "period_seconds"),
        range_seconds=_seconds(raw.get("range_seconds", range_), "range_seconds"),
        delay_seconds=_seconds(
            raw.get("delay_seconds", delay), "delay_seconds", allow_zero=True
        ),
        help=help_text,
    )


def _parse_mapping(raw: Any) -> ResourceMapping:
    if not isinstance(raw, Mapping):
        raise ConfigurationError("Each mappings entry must be a mapping")
    if not raw.get("name") or not raw.get("id_field") or not raw.get("lookup_url"):
        raise ConfigurationError("Must provide name, id_field and lookup_url")
    additional: tuple[str, ...] = ()
    if raw.get("additional_labels") is not None:
        additional = _string_list(raw["additional_labels"], "additional_labels")
    id_field = str(raw["id_field"])
    return ResourceMapping(
        name=str(raw["name"]),
        id_field=id_field,
        es_id_field=str(raw.get("es_id_field") or id_field),
        lookup_url=str(raw["lookup_url"]),
        additional_labels=additional,
    )


def load_config(
    decoded: Any,
    client_factory: ClientFactory | None = None,
    client: Any = None,
) -> ConfigSnapshot:
    """Validate a decoded configuration document and build a snapshot.

    Args:
        decoded: Parsed configuration document (None is treated as empty).
        client_factory: Builds the provider client from region and role ARN.
        client: Pre-built provider client; takes precedence over the factory.

    Returns:
        A fully validated, immutable ConfigSnapshot.

    Raises:
        ConfigurationError: If any part of the document is invalid.
    """
    if decoded is None:
        decoded = {}
    if not isinstance(decoded, Mapping):
        raise ConfigurationError("Configuration must be a mapping")
    if not decoded.get("region"):
        raise ConfigurationError("Must provide region")
    region = str(decoded["region"])
    role_arn = decoded.get("role_arn")

    period = _seconds(
        decoded.get("period_seconds", DEFAULT_PERIOD_SECONDS), "period_seconds"
    )
    range_ = _seconds(
        decoded.get("range_seconds", DEFAULT_RANGE_SECONDS), "range_seconds"
    )
    delay = _seconds(
        decoded.get("delay_seconds", DEFAULT_DELAY_SECONDS),
        "delay_seconds",
        allow_zero=True,
    )

    raw_metrics = decoded.get("metrics")
    if not isinstance(raw_metrics, list) or not raw_metrics:
        raise ConfigurationError("Must provide metrics")
    rules = tuple(_parse_rule(raw, period, range_, delay) for raw in raw_metrics)

    raw_mappings = decoded.get("mappings") or []
    if not isinstance(raw_mappings, list):
        raise ConfigurationError("mappings must be a list")
    mappings: dict[str, ResourceMapping] = {}
    for raw in raw_mappings:
        mapping = _parse_mapping(raw)
        if mapping.name in mappings:
            raise ConfigurationError(f"Duplicate mapping for namespace {mapping.name}")
        mappings[mapping.name] = mapping

    if client is None and client_factory is not None:
        client = client_factory(region, role_arn)

    logger.info(
        "Loaded configuration with %d rules and %d mappings",
        len(rules),
        len(mappings),
    )
    return ConfigSnapshot(
        rules=rules,
        mappings=MappingProxyType(mappings),
        client=client,
        region=region,
        role_arn=role_arn,
    )
