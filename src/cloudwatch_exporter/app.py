"""Wiring of the configuration file, adapters and collector."""

import logging
from pathlib import Path

from cloudwatch_exporter.adapters.config_file import read_config_file
from cloudwatch_exporter.core.collector import CloudWatchCollector
from cloudwatch_exporter.core.config import ClientFactory, load_config
from cloudwatch_exporter.core.models import ConfigSnapshot
from cloudwatch_exporter.core.ports import MetadataIndexPort
from cloudwatch_exporter.core.store import ConfigStore

logger = logging.getLogger(__name__)


def create_exporter(
    config_path: str | Path,
    metadata_index: MetadataIndexPort | None = None,
    client_factory: ClientFactory | None = None,
) -> CloudWatchCollector:
    """Build a collector whose configuration is (re)loaded from config_path.

    Args:
        config_path: YAML configuration file, re-read on every reload.
        metadata_index: Tag lookup adapter. When omitted and the file sets
            ``metadata_index_url``, an HttpMetadataIndex is created for it.
            The URL is read once here; reloads keep the same index.
        client_factory: Builds the provider client from region and role ARN.
            Defaults to the boto3 adapter.

    Returns:
        CloudWatchCollector with its ConfigStore available as ``.store``.

    Raises:
        ConfigurationError: If the initial configuration is invalid.
    """
    if client_factory is None:
        from cloudwatch_exporter.adapters.cloudwatch import create_cloudwatch_client

        client_factory = create_cloudwatch_client
    factory = client_factory

    def loader() -> ConfigSnapshot:
        return load_config(read_config_file(config_path), client_factory=factory)

    decoded = read_config_file(config_path)
    store = ConfigStore(loader, load_config(decoded, client_factory=factory))

    index_url = decoded.get("metadata_index_url")
    if metadata_index is None and index_url:
        from cloudwatch_exporter.adapters.metadata_index import HttpMetadataIndex

        metadata_index = HttpMetadataIndex(str(index_url))
    if metadata_index is None:
        logger.warning("No metadata index configured, resources stay untagged")

    return CloudWatchCollector(store, metadata_index=metadata_index)
