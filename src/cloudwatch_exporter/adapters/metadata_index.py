"""httpx adapter implementing MetadataIndexPort against a search proxy."""

import logging
from typing import Any

import httpx

from cloudwatch_exporter.core.errors import EnrichmentError

logger = logging.getLogger(__name__)

SEARCH_PROXY_PATH = "/api/console/proxy"


def build_query(field_name: str, field_value: str) -> dict[str, Any]:
    """Return the term query for the latest document with field == value.

    Two results are requested so that an ambiguous match can be detected.
    """
    return {
        "size": 2,
        "query": {
            "bool": {
                "must": [
                    {"term": {f"{field_name.lower()}.keyword": field_value}},
                    {"match": {"latest": True}},
                ]
            }
        },
    }


class HttpMetadataIndex:
    """Metadata index reached through an HTTP search console proxy.

    Args:
        base_url: Proxy base URL (e.g., https://search.example.com).
        timeout: Request timeout in seconds.
        verify: TLS verification setting passed to httpx.
        client: Pre-built httpx client, mainly for tests.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        verify: bool | str = True,
        client: httpx.Client | None = None,
    ) -> None:
        self._client = client or httpx.Client(
            base_url=base_url, timeout=timeout, verify=verify
        )

    def search(
        self, field_name: str, field_value: str, lookup_path: str
    ) -> dict[str, Any]:
        """Search lookup_path for documents whose field equals field_value.

        Raises:
            EnrichmentError: On transport errors, non-2xx responses or
                undecodable bodies.
        """
        params = {"path": f"{lookup_path.lower()}/_search", "method": "POST"}
        logger.debug(
            "Searching metadata index",
            extra={"field_name": field_name, "field_value": field_value},
        )
        try:
            response = self._client.post(
                SEARCH_PROXY_PATH,
                params=params,
                json=build_query(field_name, field_value),
                headers={"kbn-xsrf": "1"},
            )
            response.raise_for_status()
            body: dict[str, Any] = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise EnrichmentError(f"Metadata index lookup failed: {e}") from e
        return body

    def close(self) -> None:
        self._client.close()
