"""Shared test fixtures for all test modules."""

from pathlib import Path

import httpx
import pytest

from cloudwatch_exporter.core.cache import CacheRegistry, configure_engine_caches
from cloudwatch_exporter.core.collector import CloudWatchCollector
from cloudwatch_exporter.core.config import load_config
from cloudwatch_exporter.core.models import ConfigSnapshot
from cloudwatch_exporter.core.store import ConfigStore
from tests.fakes import (
    ELB_CONFIG,
    FakeClock,
    FakeCloudWatchClient,
    FakeMetadataIndex,
)


@pytest.fixture
def clock() -> FakeClock:
    """Manually advanced wall clock for cache tests."""
    return FakeClock()


@pytest.fixture
def caches(clock: FakeClock) -> CacheRegistry:
    """Isolated registry with the engine caches configured."""
    return configure_engine_caches(CacheRegistry(clock=clock))


@pytest.fixture
def cloudwatch() -> FakeCloudWatchClient:
    """Empty CloudWatch fake."""
    return FakeCloudWatchClient()


@pytest.fixture
def metadata_index() -> FakeMetadataIndex:
    """Empty metadata index fake."""
    return FakeMetadataIndex()


@pytest.fixture
def config_factory(cloudwatch: FakeCloudWatchClient):
    """Factory building a snapshot from a decoded config using the fake client."""

    def _build(decoded: dict | None = None) -> ConfigSnapshot:
        return load_config(decoded or ELB_CONFIG, client=cloudwatch)

    return _build


@pytest.fixture
def collector_factory(config_factory, caches, metadata_index):
    """Factory building a collector around a decoded config."""

    def _build(decoded: dict | None = None) -> CloudWatchCollector:
        store = ConfigStore(lambda: config_factory(decoded))
        return CloudWatchCollector(store, metadata_index=metadata_index, caches=caches)

    return _build


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Path of a temporary YAML configuration file (not yet written)."""
    return tmp_path / "config.yml"


@pytest.fixture
def asgi_test_client():
    """Factory fixture that creates an httpx.AsyncClient for ASGI testing.

    Usage:
        async def test_something(asgi_test_client):
            app = create_asgi_app(collector)
            async with asgi_test_client(app) as client:
                response = await client.get("/metrics")
    """

    def _get_client(app):
        """Return an AsyncClient context manager for the given app."""
        return httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test"
        )

    return _get_client
