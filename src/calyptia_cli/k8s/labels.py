"""
Ownership labels stamped on every cluster object created for a core instance.

The labels are a back-reference from a cluster object to the cloud project
and core instance it was created for. They are used to select the running
workload of a core instance and for auditing; never for authorization.
"""

from collections.abc import Mapping
from dataclasses import dataclass

PROJECT_ID_LABEL = "calyptia_project_id"
AGGREGATOR_ID_LABEL = "calyptia_aggregator_id"


@dataclass(frozen=True)
class OwnershipLabel:
    """
    Typed owner reference for cluster objects.

    Attributes:
        project_id: Cloud project that owns the core instance.
        entity_id: Canonical ID of the core instance.
    """

    project_id: str
    entity_id: str

    def to_labels(self) -> dict[str, str]:
        """Wire form, as set on object metadata and pod selectors."""
        return {
            PROJECT_ID_LABEL: self.project_id,
            AGGREGATOR_ID_LABEL: self.entity_id,
        }

    def selector(self) -> str:
        """Kubernetes label selector matching objects with this owner."""
        return ",".join(f"{k}={v}" for k, v in self.to_labels().items())

    @classmethod
    def from_labels(cls, labels: Mapping[str, str] | None) -> "OwnershipLabel | None":
        """Read the owner back from object labels. None if either label is missing."""
        if not labels:
            return None
        project_id = labels.get(PROJECT_ID_LABEL)
        entity_id = labels.get(AGGREGATOR_ID_LABEL)
        if not project_id or not entity_id:
            return None
        return cls(project_id=project_id, entity_id=entity_id)
