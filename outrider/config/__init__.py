"""
Configuration — Environment settings and shared constants.
"""

from .constants import OPERATOR_NAME, Annotations, CrdTarget
from .settings import OperatorConfig, parse_bool
from .validator import ConfigValidator, VariableStatus

__all__ = [
    "OPERATOR_NAME",
    "Annotations",
    "CrdTarget",
    "OperatorConfig",
    "parse_bool",
    "ConfigValidator",
    "VariableStatus",
]
