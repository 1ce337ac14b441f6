"""Prometheus text format (0.0.4) encoder for metric families."""

import math
from collections.abc import Iterable

from cloudwatch_exporter.core.models import MetricFamily

CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"


def _escape_help(text: str) -> str:
    return text.replace("\\", "\\\\").replace("\n", "\\n")


def _escape_label_value(value: str) -> str:
    return value.replace("\\", "\\\\").replace("\n", "\\n").replace('"', '\\"')


def format_value(value: float) -> str:
    """Format a sample value the way Prometheus parses it."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    return repr(float(value))


def _format_labels(labels: dict[str, str]) -> str:
    if not labels:
        return ""
    pairs = ",".join(
        f'{name}="{_escape_label_value(value)}"' for name, value in labels.items()
    )
    return "{" + pairs + "}"


def encode_families(families: Iterable[MetricFamily]) -> str:
    """Encode metric families to Prometheus text format.

    Args:
        families: An iterable of MetricFamily objects.

    Returns:
        Exposition text with HELP and TYPE lines per family.
        Empty string if no families.
    """
    lines = []
    for family in families:
        lines.append(f"# HELP {family.name} {_escape_help(family.help)}")
        lines.append(f"# TYPE {family.name} {family.type}")
        for sample in family.samples:
            lines.append(
                f"{sample.name}{_format_labels(sample.labels)} "
                f"{format_value(sample.value)}"
            )

    if not lines:
        return ""

    return "\n".join(lines) + "\n"
