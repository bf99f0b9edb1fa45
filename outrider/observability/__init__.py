"""
Observability — metrics and health for the operator.
"""

from .health import ComponentHealth, HealthChecker, HealthStatus, SystemHealth
from .metrics import MetricsRegistry, metrics

__all__ = [
    "ComponentHealth",
    "HealthChecker",
    "HealthStatus",
    "MetricsRegistry",
    "SystemHealth",
    "metrics",
]
