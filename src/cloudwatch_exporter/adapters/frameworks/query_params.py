"""Shared query parameter parsing utilities for framework adapters.

This module provides utilities for parsing query parameters that are common
across the ASGI and FastAPI adapters.
"""


def _parse_namespace_param(params: dict[str, list[str]]) -> str | None:
    """Parse the 'namespace' query parameter.

    Args:
        params: Parsed query string parameters (as returned by urllib.parse.parse_qs).

    Returns:
        The namespace, or None if missing (in which case every rule is scraped).
    """
    values = params.get("namespace") or [None]
    return _validate_namespace(values[0])


def _validate_namespace(value: str | None) -> str | None:
    """Return value as the namespace filter, or None when it is absent or empty.

    Any other value is passed through unchanged; a filter that names no
    configured namespace yields no rule families.
    """
    if value is None or value == "":
        return None
    return value
