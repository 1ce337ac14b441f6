"""Metric and label name normalization."""

import re

_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9:_]")
_UNDERSCORE_RUN = re.compile(r"__+")


def snake_case(name: str) -> str:
    """Split camel case at lower-to-upper transitions and lower-case.

    >>> snake_case("RequestCount")
    'request_count'
    """
    return _CAMEL_BOUNDARY.sub(r"\1_\2", name).lower()


def safe_name(name: str) -> str:
    """Replace characters invalid in exposition names and merge underscores.

    >>> safe_name("aws/elb__latency")
    'aws_elb_latency'
    """
    return _UNDERSCORE_RUN.sub("_", _UNSAFE_CHARS.sub("_", name))


def label_name(name: str) -> str:
    """Return the exposition label name for a dimension or tag name."""
    return safe_name(snake_case(name))
