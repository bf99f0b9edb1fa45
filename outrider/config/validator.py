"""
Configuration Validator — Report the state of every operator variable.

Used by ``outrider check-config`` so an operator can see what the
process would start with before deploying it.

## Usage

    from outrider.config.validator import ConfigValidator

    validator = ConfigValidator()
    for status in validator.validate_all():
        if not status.ok:
            print(f"{status.variable}: {status.guidance}")
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional

from .constants import (
    DEFAULT_CREDENTIALS_NAMESPACE,
    DEFAULT_EVENT_QUEUE_SIZE,
    DEFAULT_HEALTH_PORT,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
)
from .settings import parse_bool

logger = logging.getLogger(__name__)


@dataclass
class VariableStatus:
    """Status of one configuration variable."""

    variable: str
    required: bool
    is_set: bool
    effective: Optional[str]
    ok: bool
    guidance: str = ""

    def to_dict(self) -> Dict:
        return {
            "variable": self.variable,
            "required": self.required,
            "set": self.is_set,
            "effective": self.effective,
            "ok": self.ok,
            "guidance": self.guidance,
        }


VARIABLES = {
    "DEFAULT_TARGET_NAMESPACE": {
        "required": True,
        "default": None,
        "guidance": "Namespace secrets are copied into on downstream clusters",
    },
    "TESTING_MODE": {
        "required": False,
        "default": "false",
        "guidance": "Set to true to derive downstream clients from the local kubeconfig",
    },
    "CLUSTER_CREDENTIALS_NAMESPACE": {
        "required": False,
        "default": DEFAULT_CREDENTIALS_NAMESPACE,
        "guidance": "Where cluster kubeconfig secrets live when the cluster has no namespace",
    },
    "REQUEST_TIMEOUT_SECONDS": {
        "required": False,
        "default": str(DEFAULT_REQUEST_TIMEOUT_SECONDS),
        "guidance": "Deadline for each downstream API call",
        "number": float,
    },
    "EVENT_QUEUE_SIZE": {
        "required": False,
        "default": str(DEFAULT_EVENT_QUEUE_SIZE),
        "guidance": "Capacity of the event queue between watchers and the sync manager",
        "number": int,
    },
    "HEALTH_PORT": {
        "required": False,
        "default": str(DEFAULT_HEALTH_PORT),
        "guidance": "Port for /healthz, /readyz and /metrics (0 disables)",
        "number": int,
    },
}


class ConfigValidator:
    """Check operator environment variables and describe their effect."""

    def __init__(self, env: Optional[Mapping[str, str]] = None):
        self.env = os.environ if env is None else env
        self.requirements = VARIABLES

    def validate_variable(self, name: str) -> VariableStatus:
        reqs = self.requirements[name]
        raw = self.env.get(name)
        is_set = bool(raw and raw.strip())

        if not is_set:
            return VariableStatus(
                variable=name,
                required=reqs["required"],
                is_set=False,
                effective=reqs["default"],
                ok=not reqs["required"],
                guidance=reqs["guidance"],
            )

        effective = raw.strip()
        ok = True
        guidance = ""

        if name == "TESTING_MODE":
            effective = str(parse_bool(raw)).lower()
        elif "number" in reqs:
            try:
                reqs["number"](effective)
            except ValueError:
                ok = False
                guidance = f"Not a number, {reqs['default']} will be used"
                effective = reqs["default"]

        return VariableStatus(
            variable=name,
            required=reqs["required"],
            is_set=True,
            effective=effective,
            ok=ok,
            guidance=guidance,
        )

    def validate_all(self) -> List[VariableStatus]:
        return [self.validate_variable(name) for name in self.requirements]

    def is_valid(self) -> bool:
        """True when the operator would start with this environment."""
        return all(s.ok for s in self.validate_all() if s.required)

    def log_status(self) -> None:
        for status in self.validate_all():
            if status.ok:
                logger.info(f"✓ {status.variable}={status.effective}")
            else:
                logger.warning(f"✗ {status.variable}: {status.guidance}")
