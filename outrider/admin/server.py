"""
Probe Server — Small Flask app serving health and metrics.

Runs in a daemon thread next to the operator. Binding ``port=0`` in
``ProbeServer`` picks a free port, which tests rely on.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Dict, Optional

from flask import Flask, request
from werkzeug.serving import make_server

from ..observability.health import HealthChecker
from ..observability.metrics import MetricsRegistry, metrics as default_metrics
from .routes_probes import probes_bp

logger = logging.getLogger(__name__)


def create_app(
    checker: HealthChecker,
    registry: Optional[MetricsRegistry] = None,
    status_provider: Optional[Callable[[], Dict]] = None,
) -> Flask:
    """Create the Flask application."""
    app = Flask(__name__)

    app.config["HEALTH_CHECKER"] = checker
    app.config["METRICS_REGISTRY"] = registry or default_metrics
    app.config["STATUS_PROVIDER"] = status_provider

    app.register_blueprint(probes_bp)

    # ── Request Logging ───────────────────────────────────────────

    @app.before_request
    def log_request_start():
        request._start_time = time.time()

    @app.after_request
    def log_request_end(response):
        duration_ms = 0
        if hasattr(request, "_start_time"):
            duration_ms = int((time.time() - request._start_time) * 1000)
        # Probes are polled constantly by the kubelet
        logger.debug(f"{request.method} {request.path} → {response.status_code} ({duration_ms}ms)")
        return response

    return app


class ProbeServer:
    """Serve a Flask app from a background thread."""

    def __init__(self, app: Flask, host: str = "0.0.0.0", port: int = 8080):
        self.app = app
        self.host = host
        self._server = make_server(host, port, app, threaded=True)
        self.port = self._server.server_port
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        self._thread = threading.Thread(
            target=self._server.serve_forever,
            name="probe-server",
            daemon=True,
        )
        self._thread.start()
        logger.info(f"Probe server listening on http://{self.host}:{self.port}")

    def stop(self) -> None:
        self._server.shutdown()
        if self._thread is not None:
            self._thread.join(timeout=5)
        logger.info("Probe server stopped")
