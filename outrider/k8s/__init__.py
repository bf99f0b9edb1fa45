"""
Kubernetes access — management-cluster reads, downstream clients,
namespace provisioning and the CRD startup gate.
"""

from .client import ClientFactory, rewrite_local_host
from .crd import CrdGate
from .management import ManagementCluster, load_management_client
from .namespaces import ensure_namespace_exists

__all__ = [
    "ClientFactory",
    "rewrite_local_host",
    "CrdGate",
    "ManagementCluster",
    "load_management_client",
    "ensure_namespace_exists",
]
