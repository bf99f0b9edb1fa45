"""
Operator Settings — Parse configuration from environment variables.

Required:
    DEFAULT_TARGET_NAMESPACE=fleet-secrets

Optional:
    TESTING_MODE=false                     # build downstream clients from the local kubeconfig
    CLUSTER_CREDENTIALS_NAMESPACE=cattle-system
    REQUEST_TIMEOUT_SECONDS=30
    EVENT_QUEUE_SIZE=256
    HEALTH_PORT=8080                       # 0 disables the probe server

## Usage

    from outrider.config import OperatorConfig

    config = OperatorConfig.from_env()
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from ..errors import ConfigurationError
from .constants import (
    DEFAULT_CREDENTIALS_NAMESPACE,
    DEFAULT_EVENT_QUEUE_SIZE,
    DEFAULT_HEALTH_PORT,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    OPERATOR_NAME,
    Annotations,
    CrdTarget,
)

logger = logging.getLogger(__name__)


def parse_bool(value: Optional[str]) -> bool:
    """Only the exact string "true" is true. Anything else is false."""
    return value == "true"


def _parse_number(env: Mapping[str, str], name: str, default, cast):
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        logger.warning(f"{name}={raw!r} is not a valid number, using {default}")
        return default


@dataclass
class OperatorConfig:
    """Everything the operator components need, passed explicitly."""

    default_target_namespace: str
    testing_mode: bool = False
    credentials_namespace: str = DEFAULT_CREDENTIALS_NAMESPACE
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    event_queue_size: int = DEFAULT_EVENT_QUEUE_SIZE
    health_port: int = DEFAULT_HEALTH_PORT

    field_manager: str = OPERATOR_NAME
    annotations: Annotations = field(default_factory=Annotations)
    crd: CrdTarget = field(default_factory=CrdTarget)

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "OperatorConfig":
        """
        Build configuration from the environment.

        Raises:
            ConfigurationError: If DEFAULT_TARGET_NAMESPACE is not set
        """
        if env is None:
            env = os.environ

        namespace = (env.get("DEFAULT_TARGET_NAMESPACE") or "").strip()
        if not namespace:
            raise ConfigurationError(
                "DEFAULT_TARGET_NAMESPACE environment variable not set"
            )

        queue_size = _parse_number(env, "EVENT_QUEUE_SIZE", DEFAULT_EVENT_QUEUE_SIZE, int)
        if queue_size < 1:
            logger.warning(f"EVENT_QUEUE_SIZE must be positive, using {DEFAULT_EVENT_QUEUE_SIZE}")
            queue_size = DEFAULT_EVENT_QUEUE_SIZE

        return cls(
            default_target_namespace=namespace,
            testing_mode=parse_bool(env.get("TESTING_MODE")),
            credentials_namespace=(
                env.get("CLUSTER_CREDENTIALS_NAMESPACE") or DEFAULT_CREDENTIALS_NAMESPACE
            ),
            request_timeout=_parse_number(
                env, "REQUEST_TIMEOUT_SECONDS", DEFAULT_REQUEST_TIMEOUT_SECONDS, float
            ),
            event_queue_size=queue_size,
            health_port=_parse_number(env, "HEALTH_PORT", DEFAULT_HEALTH_PORT, int),
        )

    def summary(self) -> str:
        """One-line description for the startup log."""
        return (
            f"default_target_namespace={self.default_target_namespace} "
            f"testing_mode={self.testing_mode} "
            f"credentials_namespace={self.credentials_namespace} "
            f"request_timeout={self.request_timeout}s "
            f"event_queue_size={self.event_queue_size}"
        )
