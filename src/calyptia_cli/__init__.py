"""
Calyptia Cloud command-line client.

This package provides:
- Entity key resolution (names or IDs to canonical IDs)
- Shell-completion candidate building
- Kubernetes provisioning of core instances
- Concurrent bulk operations against the cloud API
"""

from calyptia_cli.bulk import run_all
from calyptia_cli.k8s.labels import OwnershipLabel
from calyptia_cli.k8s.provision import (
    ProvisionedResourceSet,
    ProvisioningOrchestrator,
    ProvisionStep,
)
from calyptia_cli.resolve.identifiers import is_canonical_id
from calyptia_cli.resolve.keys import KeyResolver, build_keys, resolve_key

__version__ = "0.1.0"

__all__ = [
    "KeyResolver",
    "OwnershipLabel",
    "ProvisionStep",
    "ProvisionedResourceSet",
    "ProvisioningOrchestrator",
    "build_keys",
    "is_canonical_id",
    "resolve_key",
    "run_all",
]
