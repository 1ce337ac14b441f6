"""ASGI generic adapter for the exporter endpoints.

This adapter provides a framework-agnostic ASGI application that can be used
with any ASGI server (uvicorn, hypercorn, daphne) without requiring FastAPI
as a dependency.
"""

import asyncio
import json
from collections.abc import Callable, Coroutine
from typing import Any
from urllib.parse import parse_qs

from cloudwatch_exporter.adapters.frameworks.query_params import (
    _parse_namespace_param,
)
from cloudwatch_exporter.core.collector import CloudWatchCollector
from cloudwatch_exporter.core.encoding.prometheus import CONTENT_TYPE, encode_families
from cloudwatch_exporter.core.logs import log_exception
from cloudwatch_exporter.core.store import ConfigStore

# ASGI type aliases
Scope = dict[str, Any]
Receive = Callable[[], Coroutine[Any, Any, dict[str, Any]]]
Send = Callable[[dict[str, Any]], Coroutine[Any, Any, None]]
ASGIApp = Callable[[Scope, Receive, Send], Coroutine[Any, Any, None]]

HOME_PAGE = """<html>
<head><title>CloudWatch Exporter</title></head>
<body>
<h1>CloudWatch Exporter</h1>
<p><a href="/metrics">Metrics</a></p>
</body>
</html>
"""


def _parse_query_params(scope: Scope) -> dict[str, list[str]]:
    """Parse query string from ASGI scope into parameter dictionary.

    Args:
        scope: ASGI scope dictionary containing request metadata.

    Returns:
        Dictionary mapping parameter names to lists of values.
        Returns empty dict if query_string is missing or empty.
    """
    query_string = scope.get("query_string", b"").decode(errors="replace")
    return parse_qs(query_string)


async def _send_response(send: Send, status: int, content_type: str, body: str) -> None:
    """Send an HTTP response with headers and body.

    Args:
        send: ASGI send callable for writing response.
        status: HTTP status code.
        content_type: Content-Type header value.
        body: Response body as string (will be encoded to bytes).
    """
    headers = [(b"content-type", content_type.encode())]
    await send({"type": "http.response.start", "status": status, "headers": headers})
    await send({"type": "http.response.body", "body": body.encode()})


async def _handle_endpoint(
    send: Send,
    endpoint_func: Callable[[], Coroutine[Any, Any, str]],
    content_type: str,
    log_message: str,
) -> None:
    """Execute an endpoint function with error handling and send response.

    Args:
        send: ASGI send callable for writing response.
        endpoint_func: Async function that returns response body.
        content_type: Content-Type header for success response.
        log_message: Message to log on error.
    """
    try:
        body = await endpoint_func()
        await _send_response(send, 200, content_type, body)
    except Exception:
        log_exception(log_message)
        error_body = json.dumps({"error": "Internal Server Error"})
        await _send_response(send, 500, "application/json", error_body)


async def scrape_text(collector: CloudWatchCollector, namespace: str | None) -> str:
    """Run a scrape in a worker thread and encode the result."""
    families = await asyncio.to_thread(collector.collect, namespace)
    return encode_families(families)


async def reload_config(store: ConfigStore) -> tuple[int, str]:
    """Reload the configuration in a worker thread.

    Returns:
        (status code, body): 200 on success, 500 with the error otherwise.
    """
    try:
        await asyncio.to_thread(store.reload)
    except Exception as e:
        return 500, f"Reload failed: {e}\n"
    return 200, "OK\n"


def create_asgi_app(
    collector: CloudWatchCollector,
    store: ConfigStore | None = None,
) -> ASGIApp:
    """Create an ASGI app with /metrics, /-/reload and / endpoints.

    Args:
        collector: Collector producing the exposition families.
        store: Configuration store reloaded by POST /-/reload. Without one
            the reload endpoint answers 404.

    Returns:
        ASGI application callable.
    """

    async def app(scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            return

        path = scope["path"]

        if path == "/metrics" or path.startswith("/metrics/"):
            namespace = _parse_namespace_param(_parse_query_params(scope))
            await _handle_endpoint(
                send,
                lambda: scrape_text(collector, namespace),
                CONTENT_TYPE,
                "Error encoding metrics endpoint",
            )
        elif path == "/-/reload" and store is not None:
            if scope["method"] != "POST":
                await _send_response(
                    send, 405, "text/plain", "Only POST requests allowed\n"
                )
                return
            status, body = await reload_config(store)
            await _send_response(send, status, "text/plain", body)
        elif path == "/":
            await _send_response(send, 200, "text/html", HOME_PAGE)
        else:
            await _send_response(send, 404, "text/plain", "Not Found")

    return app
