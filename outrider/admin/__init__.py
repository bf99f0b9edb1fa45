"""
Admin — HTTP probe server for the operator.
"""

from .server import ProbeServer, create_app

__all__ = ["ProbeServer", "create_app"]
