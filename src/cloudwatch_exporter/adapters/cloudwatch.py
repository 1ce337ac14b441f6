"""boto3 adapter implementing CloudWatchClientPort."""

import logging
from collections.abc import Sequence
from datetime import datetime
from typing import Any

import boto3
from botocore.config import Config
from botocore.credentials import CredentialProvider, DeferredRefreshableCredentials
from botocore.session import get_session

from cloudwatch_exporter.core.models import Datapoint, Dimension, DimensionSet
from cloudwatch_exporter.core.ports import ListMetricsPage

logger = logging.getLogger(__name__)

SESSION_NAME = "cloudwatch_exporter"

_STANDARD_FIELDS = {
    "Sum": "sum",
    "SampleCount": "sample_count",
    "Minimum": "minimum",
    "Maximum": "maximum",
    "Average": "average",
}


def _to_datapoint(raw: dict[str, Any]) -> Datapoint:
    fields = {attr: raw[key] for key, attr in _STANDARD_FIELDS.items() if key in raw}
    return Datapoint(
        timestamp=raw["Timestamp"],
        unit=raw.get("Unit"),
        extended_statistics=dict(raw.get("ExtendedStatistics") or {}),
        **fields,
    )


class Boto3CloudWatchClient:
    """CloudWatch client backed by a boto3 ``cloudwatch`` client.

    Args:
        client: A boto3 CloudWatch client (or anything with the same
            list_metrics/get_metric_statistics keyword interface).
    """

    def __init__(self, client: Any) -> None:
        self._client = client

    def list_metrics(
        self,
        namespace: str,
        metric_name: str,
        dimension_names: Sequence[str],
        next_token: str | None = None,
    ) -> ListMetricsPage:
        """List one page of metrics filtered by dimension names."""
        request: dict[str, Any] = {
            "Namespace": namespace,
            "MetricName": metric_name,
            "Dimensions": [{"Name": name} for name in dimension_names],
        }
        if next_token:
            request["NextToken"] = next_token
        response = self._client.list_metrics(**request)
        metrics: list[DimensionSet] = [
            tuple(Dimension(d["Name"], d["Value"]) for d in m.get("Dimensions", []))
            for m in response.get("Metrics", [])
        ]
        return ListMetricsPage(metrics=metrics, next_token=response.get("NextToken"))

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
        """Fetch the datapoints of one time series."""
        request: dict[str, Any] = {
            "Namespace": namespace,
            "MetricName": metric_name,
            "Dimensions": [{"Name": d.name, "Value": d.value} for d in dimensions],
            "StartTime": start_time,
            "EndTime": end_time,
            "Period": period,
        }
        # The API rejects empty lists for either parameter.
        if statistics:
            request["Statistics"] = list(statistics)
        if extended_statistics:
            request["ExtendedStatistics"] = list(extended_statistics)
        response = self._client.get_metric_statistics(**request)
        return [_to_datapoint(raw) for raw in response.get("Datapoints", [])]


def create_cloudwatch_client(
    region: str,
    role_arn: str | None = None,
    connect_timeout: float = 10,
    read_timeout: float = 30,
) -> Boto3CloudWatchClient:
    """Build a CloudWatch client for the region, assuming role_arn if given.

    Args:
        region: AWS region name (e.g., us-west-2).
        role_arn: Role to assume through STS before calling CloudWatch.
        connect_timeout: Socket connect timeout in seconds.
        read_timeout: Socket read timeout in seconds.

    Returns:
        Boto3CloudWatchClient ready for use by the scrape engine.
    """
    config = Config(
        region_name=region,
        connect_timeout=connect_timeout,
        read_timeout=read_timeout,
        retries={"max_attempts": 1, "mode": "standard"},
    )
    if role_arn:
        logger.info("Assuming role %s for CloudWatch access", role_arn)
        sts = boto3.session.Session().client("sts", config=config)
        session = assume_role_session(role_arn, sts)
    else:
        session = boto3.session.Session()
    return Boto3CloudWatchClient(session.client("cloudwatch", config=config))


class AssumeRoleProvider(CredentialProvider):
    """Credential provider that assumes a role and re-assumes it before expiry.

    Args:
        sts_client: boto3 STS client used for AssumeRole calls.
        role_arn: ARN of the role to assume.
    """

    METHOD = "cloudwatch-exporter-assume-role"
    CANONICAL_NAME = "custom-cloudwatch-exporter-assume-role"

    def __init__(self, sts_client: Any, role_arn: str) -> None:
        super().__init__()
        self._sts = sts_client
        self._role_arn = role_arn

    def load(self) -> DeferredRefreshableCredentials:
        return DeferredRefreshableCredentials(
            refresh_using=self._refresh, method=self.METHOD
        )

    def _refresh(self) -> dict[str, str]:
        credentials = self._sts.assume_role(
            RoleArn=self._role_arn, RoleSessionName=SESSION_NAME
        )["Credentials"]
        logger.debug("Assumed role %s", self._role_arn)
        return {
            "access_key": credentials["AccessKeyId"],
            "secret_key": credentials["SecretAccessKey"],
            "token": credentials["SessionToken"],
            "expiry_time": credentials["Expiration"].isoformat(),
        }


def assume_role_session(role_arn: str, sts_client: Any) -> boto3.session.Session:
    """Return a session whose credentials come from assuming role_arn.

    The first AssumeRole call happens when credentials are first needed.
    """
    botocore_session = get_session()
    resolver = botocore_session.get_component("credential_provider")
    resolver.insert_before("env", AssumeRoleProvider(sts_client, role_arn))
    return boto3.session.Session(botocore_session=botocore_session)
