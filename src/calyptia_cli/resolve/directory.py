"""
Per-kind listing capability used by key resolution and completion.

Resolution is written once against the EntityDirectory protocol; the
CloudDirectory implementation binds it to a cloud client and project.
"""

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from calyptia_cli.types import EntityKind, ListFilter, NamedEntity

if TYPE_CHECKING:
    from calyptia_cli.cloud.client import CloudClient

ListEntities = Callable[[ListFilter], Awaitable[Sequence[NamedEntity]]]
"""Lists the entities of one kind matching a filter."""


@runtime_checkable
class EntityDirectory(Protocol):
    """Source of entity listings, one lister per entity kind."""

    def lister(self, kind: EntityKind) -> ListEntities:
        """Return the listing function for entities of the given kind."""
        ...


@dataclass
class CloudDirectory:
    """
    EntityDirectory backed by the cloud API for a single project.

    Attributes:
        client: Cloud API client.
        project_id: Project whose entities are listed.
    """

    client: "CloudClient"
    project_id: str

    def lister(self, kind: EntityKind) -> ListEntities:
        async def _list(flt: ListFilter) -> Sequence[NamedEntity]:
            return await self.client.list_entities(self.project_id, kind, flt)

        return _list
