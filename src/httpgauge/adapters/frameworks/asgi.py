"""ASGI adapter for the publication endpoint.

This adapter provides a framework-agnostic ASGI application that can be served
by any ASGI server (uvicorn, hypercorn, daphne) without requiring FastAPI.
"""

from collections.abc import Callable, Coroutine
from typing import Any

from httpgauge.core.encoding.prometheus import CONTENT_TYPE, render
from httpgauge.core.ports import MetricStorePort

# ASGI type aliases
Scope = dict[str, Any]
Receive = Callable[[], Coroutine[Any, Any, dict[str, Any]]]
Send = Callable[[dict[str, Any]], Coroutine[Any, Any, None]]
ASGIApp = Callable[[Scope, Receive, Send], Coroutine[Any, Any, None]]


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


def create_asgi_app(store: MetricStorePort, path: str = "/metrics") -> ASGIApp:
    """Create an ASGI app serving the store in Prometheus text format.

    The endpoint only reads the store; it never triggers a fetch. An empty
    store renders as an empty 200 response.

    Args:
        store: Store implementing MetricStorePort.
        path: Request path of the metrics resource.

    Returns:
        ASGI application callable.
    """

    async def app(scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "lifespan":
            await _handle_lifespan(receive, send)
            return
        if scope["type"] != "http":
            return

        if scope["path"] != path:
            await _send_response(send, 404, "text/plain", "Not Found")
            return
        if scope["method"] not in ("GET", "HEAD"):
            await _send_response(send, 405, "text/plain", "Method Not Allowed")
            return

        body = render(await store.snapshot())
        await _send_response(send, 200, CONTENT_TYPE, body)

    return app


async def _handle_lifespan(receive: Receive, send: Send) -> None:
    """Acknowledge lifespan startup and shutdown; nothing to set up."""
    while True:
        message = await receive()
        if message["type"] == "lifespan.startup":
            await send({"type": "lifespan.startup.complete"})
        elif message["type"] == "lifespan.shutdown":
            await send({"type": "lifespan.shutdown.complete"})
            return
