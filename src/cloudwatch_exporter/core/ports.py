"""Port interfaces for provider and metadata index adapters.

These protocols define the contracts that collaborator adapters must implement.
The core domain depends only on these interfaces, not concrete implementations.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

from cloudwatch_exporter.core.models import Datapoint, DimensionSet


@dataclass(frozen=True)
class ListMetricsPage:
    """One page of a metric listing.

    Attributes:
        metrics: Dimension sets of the listed metrics, one per metric.
        next_token: Continuation token, or None on the last page.
    """

    metrics: list[DimensionSet] = field(default_factory=list)
    next_token: str | None = None


@runtime_checkable
class CloudWatchClientPort(Protocol):
    """Port for CloudWatch API operations.

    Adapters implementing this protocol list metrics and fetch statistics.
    Examples: Boto3CloudWatchClient, FakeCloudWatchClient.
    """

    def list_metrics(
        self,
        namespace: str,
        metric_name: str,
        dimension_names: Sequence[str],
        next_token: str | None = None,
    ) -> ListMetricsPage:
        """List metrics carrying the given dimension names.

        Args:
            namespace: CloudWatch namespace.
            metric_name: CloudWatch metric name.
            dimension_names: Dimension names used as filters.
            next_token: Continuation token from the previous page.

        Returns:
            A page of metrics and the token for the next one.
        """
        ...

    def get_metric_statistics(
        self,
        namespace: str,
        metric_name: str,
        dimensions: DimensionSet,
        statistics: Sequence[str],
        extended_statistics: Sequence[str],
        period: int,
        start_time: datetime,
        end_time: datetime,
    ) -> list[Datapoint]:
        """Fetch datapoints for one time series in [start_time, end_time]."""
        ...


@runtime_checkable
class MetadataIndexPort(Protocol):
    """Port for the resource metadata index.

    Adapters implementing this protocol search resources by identifier.
    Examples: HttpMetadataIndex, FakeMetadataIndex.
    """

    def search(
        self, field_name: str, field_value: str, lookup_path: str
    ) -> dict[str, Any]:
        """Search the index for resources whose field equals the given value.

        Returns:
            Decoded JSON response with a ``hits`` object holding the total
            result count and the matching documents' ``_source`` objects.
        """
        ...
