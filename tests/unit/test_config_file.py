"""Tests for reading YAML configuration files."""

from pathlib import Path

import pytest

from cloudwatch_exporter.adapters.config_file import read_config_file
from cloudwatch_exporter.core.config import load_config
from cloudwatch_exporter.core.errors import ConfigurationError

pytestmark = [pytest.mark.unit, pytest.mark.tier(1)]

EXAMPLE = """\
region: us-east-1
period_seconds: 300
metrics:
  - aws_namespace: AWS/ELB
    aws_metric_name: RequestCount
    aws_dimensions: [LoadBalancerName]
    aws_statistics: [Sum]
mappings:
  - name: AWS/ELB
    id_field: LoadBalancerName
    lookup_url: elb
"""


class TestReadConfigFile:
    """Tests for read_config_file()."""

    def test_reads_yaml_document(self, config_file: Path) -> None:
        config_file.write_text(EXAMPLE)
        decoded = read_config_file(config_file)
        assert decoded["region"] == "us-east-1"
        assert decoded["metrics"][0]["aws_dimensions"] == ["LoadBalancerName"]

    def test_document_validates(self, config_file: Path) -> None:
        """The example file is a complete configuration."""
        config_file.write_text(EXAMPLE)
        snapshot = load_config(read_config_file(config_file))
        assert snapshot.rules[0].period_seconds == 300
        assert snapshot.mappings["AWS/ELB"].es_id_field == "LoadBalancerName"

    def test_empty_file_is_empty_mapping(self, config_file: Path) -> None:
        config_file.write_text("")
        assert read_config_file(config_file) == {}

    def test_invalid_yaml_raises(self, config_file: Path) -> None:
        config_file.write_text("metrics: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            read_config_file(config_file)

    def test_missing_file_raises_os_error(self, tmp_path: Path) -> None:
        with pytest.raises(OSError):
            read_config_file(tmp_path / "absent.yml")
