"""Enrichment of discovered resources with tags from a metadata index.

Enrichment is best effort: whatever the index returns (or fails to return),
the caller gets a tag set with the same keys, missing values replaced by
UNTAGGED, so label sets keep a stable shape.
"""

import logging
from collections.abc import Mapping
from typing import Any

from cloudwatch_exporter.core.cache import TAGS_CACHE, CacheRegistry, cache_key
from cloudwatch_exporter.core.models import ResourceMapping
from cloudwatch_exporter.core.naming import label_name
from cloudwatch_exporter.core.ports import MetadataIndexPort

logger = logging.getLogger(__name__)

UNTAGGED = "UNTAGGED"

TAGS_PREFIX = "tags."

# tag name -> key in the index document's source object
TAG_VOCABULARY: dict[str, str] = {
    "Environment": "tags.Environment",
    "Stack": "tags.Stack",
    "Application": "tags.Application",
    "Role": "tags.Role",
    "WorkLoad": "tags.WorkLoad",
    "accountname": "accountname",
    "region": "region",
}

# Load balancer identifiers of the form "<type>/<name>/<id>".
COMPOUND_PREFIXES = ("net/", "app/")


def _tag_sources(additional_labels: tuple[str, ...]) -> dict[str, str]:
    sources = dict(TAG_VOCABULARY)
    for label in additional_labels:
        sources.setdefault(label, TAGS_PREFIX + label)
    return sources


def default_tag_set(additional_labels: tuple[str, ...] = ()) -> dict[str, str]:
    """Return a tag set with every expected tag set to UNTAGGED."""
    return {name: UNTAGGED for name in _tag_sources(additional_labels)}


def _source_value(source: Mapping[str, Any], key: str) -> Any:
    if key in source:
        return source[key]
    # Documents may also nest "tags.Environment" as {"tags": {"Environment": ..}}
    node: Any = source
    for part in key.split("."):
        if not isinstance(node, Mapping) or part not in node:
            return None
        node = node[part]
    return node


def extract_tags(
    source: Mapping[str, Any], additional_labels: tuple[str, ...] = ()
) -> dict[str, str]:
    """Read the expected tags from an index document, defaulting to UNTAGGED."""
    tags = default_tag_set(additional_labels)
    for name, key in _tag_sources(additional_labels).items():
        value = _source_value(source, key)
        if value is not None and not isinstance(value, Mapping):
            tags[name] = str(value)
    return tags


def _total_hits(hits: Mapping[str, Any]) -> int:
    total = hits.get("total", 0)
    if isinstance(total, Mapping):
        total = total.get("value", 0)
    return int(total)


def strip_compound_prefix(value: str) -> str:
    """Return the bare name of a "net/<name>/<id>" style identifier."""
    for prefix in COMPOUND_PREFIXES:
        if value.startswith(prefix):
            rest = value[len(prefix) :]
            return rest.split("/", 1)[0]
    return value


def find_resource_name(labels: dict[str, str], mapping: ResourceMapping) -> str:
    """Find the resource identifier among a sample's labels.

    A compound load balancer identifier is rewritten in place to its bare
    name, which is also what gets looked up in the index.

    Returns:
        The resource name, or an empty string if no label matches.
    """
    wanted = label_name(mapping.id_field).lower()
    resource_name = ""
    for name, value in labels.items():
        if name.lower() != wanted:
            continue
        resource_name = strip_compound_prefix(value)
        labels[name] = resource_name
    return resource_name


class TagEnricher:
    """Looks up resource tags in the metadata index, with caching.

    Args:
        index: Metadata index adapter.
        caches: Registry holding the tags cache.
    """

    def __init__(self, index: MetadataIndexPort | None, caches: CacheRegistry) -> None:
        self._index = index
        self._caches = caches

    def enrich(self, mapping: ResourceMapping, resource_name: str) -> dict[str, str]:
        """Return the tag set for a resource; never raises."""
        if self._index is None:
            return default_tag_set(mapping.additional_labels)
        if not resource_name or not mapping.lookup_url:
            logger.warning(
                "Resource name label not found in CloudWatch data",
                extra={"id_field": mapping.es_id_field, "namespace": mapping.name},
            )
            return default_tag_set(mapping.additional_labels)

        key = cache_key(mapping.es_id_field, resource_name, mapping.lookup_url)
        cached = self._caches.get(TAGS_CACHE, key)
        if cached is not None:
            return dict(cached)

        try:
            response = self._index.search(
                mapping.es_id_field, resource_name, mapping.lookup_url
            )
            hits = response["hits"]
            total = _total_hits(hits)
            source = hits["hits"][0]["_source"] if total == 1 else None
        except Exception as e:
            logger.warning(
                "Tag lookup failed for %s: %s",
                resource_name,
                e,
                extra={"lookup_url": mapping.lookup_url},
            )
            return default_tag_set(mapping.additional_labels)

        if source is None:
            logger.warning(
                "Expected exactly one index match for %s, found %d",
                resource_name,
                total,
                extra={"lookup_url": mapping.lookup_url},
            )
            tags = default_tag_set(mapping.additional_labels)
        else:
            tags = extract_tags(source, mapping.additional_labels)
        self._caches.put(TAGS_CACHE, key, tags)
        return dict(tags)
