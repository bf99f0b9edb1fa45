"""
Probe API — Liveness, readiness, metrics and status endpoints.

Blueprint: probes_bp
Routes:
    /healthz      (liveness, 200 while the process serves)
    /readyz       (readiness, 503 until CRD gate open and initial sync done)
    /metrics      (Prometheus text format)
    /api/status   (JSON health report with sync and metrics sections)
"""

from __future__ import annotations

from flask import Blueprint, Response, current_app, jsonify

probes_bp = Blueprint("probes", __name__)

PROMETHEUS_CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"


def _checker():
    return current_app.config["HEALTH_CHECKER"]


@probes_bp.route("/healthz")
def healthz():
    return jsonify({"status": "ok"})


@probes_bp.route("/readyz")
def readyz():
    if _checker().ready():
        return jsonify({"ready": True})
    return jsonify({"ready": False}), 503


@probes_bp.route("/metrics")
def metrics_endpoint():
    registry = current_app.config["METRICS_REGISTRY"]
    return Response(registry.export_prometheus(), content_type=PROMETHEUS_CONTENT_TYPE)


@probes_bp.route("/api/status")
def api_status():
    """Health report extended with sync and metrics sections."""
    report = _checker().check().to_dict()

    provider = current_app.config.get("STATUS_PROVIDER")
    report["sync"] = provider() if provider else None
    report["metrics"] = current_app.config["METRICS_REGISTRY"].export_json()
    return jsonify(report)
