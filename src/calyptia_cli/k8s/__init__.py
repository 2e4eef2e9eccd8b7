"""
Kubernetes provisioning of core instances.

Key types:
- OwnershipLabel: labels linking cluster objects to their cloud owner
- ClusterClient: capability the orchestrator needs from a cluster
- KubernetesClusterClient: ClusterClient on the official kubernetes client
- ProvisioningOrchestrator: ordered creation of a core instance's objects
"""

from calyptia_cli.k8s.cluster import ClusterClient, KubernetesClusterClient, load_cluster_client
from calyptia_cli.k8s.labels import OwnershipLabel
from calyptia_cli.k8s.provision import (
    ProvisionedResourceSet,
    ProvisioningOrchestrator,
    ProvisionStep,
)

__all__ = [
    "ClusterClient",
    "KubernetesClusterClient",
    "OwnershipLabel",
    "ProvisionStep",
    "ProvisionedResourceSet",
    "ProvisioningOrchestrator",
    "load_cluster_client",
]
