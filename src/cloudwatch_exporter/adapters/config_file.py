"""YAML configuration file reader."""

from pathlib import Path
from typing import Any

import yaml

from cloudwatch_exporter.core.errors import ConfigurationError


def read_config_file(path: str | Path) -> Any:
    """Read and decode a YAML configuration file.

    Args:
        path: Path to the YAML file.

    Returns:
        The decoded document; an empty file decodes to an empty dict.

    Raises:
        ConfigurationError: If the file is not valid YAML.
        OSError: If the file cannot be read.
    """
    text = Path(path).read_text(encoding="utf-8")
    try:
        decoded = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
    return {} if decoded is None else decoded
