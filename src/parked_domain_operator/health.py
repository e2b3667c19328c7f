"""Health check and metrics HTTP endpoints."""

from __future__ import annotations

import threading
from typing import Any, Callable, Iterable

from prometheus_client import make_wsgi_app
from werkzeug.serving import make_server
from werkzeug.wrappers import Request, Response

_ready = threading.Event()


def mark_ready() -> None:
    """Report the operator as ready to serve reconciliations."""
    _ready.set()


def mark_not_ready() -> None:
    _ready.clear()


def is_ready() -> bool:
    return _ready.is_set()


def create_combined_wsgi_app() -> Callable[..., Iterable[bytes]]:
    """Create a WSGI app serving /healthz, /readyz and /metrics."""
    metrics_app = make_wsgi_app()

    def app(environ: dict[str, Any], start_response: Callable[..., Any]) -> Iterable[bytes]:
        request = Request(environ)
        if request.path == "/healthz":
            return Response("ok", mimetype="text/plain")(environ, start_response)
        if request.path == "/readyz":
            if is_ready():
                return Response("ready", mimetype="text/plain")(environ, start_response)
            return Response("not ready", status=503, mimetype="text/plain")(environ, start_response)
        if request.path == "/metrics":
            return metrics_app(environ, start_response)
        return Response("not found", status=404, mimetype="text/plain")(environ, start_response)

    return app


def start_health_server(port: int) -> threading.Thread:
    """Serve the combined app from a daemon thread."""
    server = make_server("", port, create_combined_wsgi_app(), threaded=True)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    return thread
