"""
Human key resolution and completion candidates.

A human key is either an entity name or a canonical ID. Names are not
unique, so resolution follows one rule for every entity kind:

1. List entities of the kind named exactly like the key, capped at two
   results (enough to tell "unique" from "ambiguous").
2. A single match wins, even if the key also looks like an ID.
3. Otherwise an ID-shaped key is trusted as-is; any other key fails
   with EntityNotFoundError (no match) or AmbiguousKeyError (several).

Trusted IDs are not checked for existence here; the following remote
call reports unknown IDs.

build_keys applies the same collision rule to shell completion: unique
names are offered as names, colliding names are replaced by IDs.
"""

import logging
from collections import Counter
from collections.abc import Sequence

from calyptia_cli.errors import AmbiguousKeyError, EntityNotFoundError
from calyptia_cli.resolve.directory import EntityDirectory, ListEntities
from calyptia_cli.resolve.identifiers import is_canonical_id
from calyptia_cli.types import CanonicalId, EntityKind, ListFilter, NamedEntity, Scope

logger = logging.getLogger(__name__)

# Two results distinguish a unique name from an ambiguous one.
RESOLVE_LIMIT = 2


async def resolve_key(
    kind: EntityKind,
    key: str,
    list_entities: ListEntities,
    scope: Scope | None = None,
) -> CanonicalId:
    """
    Resolve a human key to a canonical ID.

    Args:
        kind: Entity kind, used in error messages.
        key: Name or ID supplied by the operator.
        list_entities: Listing function for entities of `kind`.
        scope: Optional environment / core instance narrowing.

    Returns:
        The ID of the single entity named `key`, or `key` itself when it
        is ID-shaped and the name does not match exactly one entity.

    Raises:
        EntityNotFoundError: No match and `key` is not ID-shaped.
        AmbiguousKeyError: Several matches and `key` is not ID-shaped.
    """
    flt = ListFilter(name=key, scope=scope or Scope(), last=RESOLVE_LIMIT)
    matches = await list_entities(flt)

    if len(matches) == 1:
        logger.debug("resolved %s %r by name to %s", kind.label, key, matches[0].id)
        return matches[0].id

    if is_canonical_id(key):
        logger.debug(
            "%s %r matched %d names, using it as an ID", kind.label, key, len(matches)
        )
        return key

    if matches:
        raise AmbiguousKeyError(kind, key)
    raise EntityNotFoundError(kind, key)


class KeyResolver:
    """
    Resolves keys of any entity kind against an EntityDirectory.

    Example:
        resolver = KeyResolver(CloudDirectory(client, project_id))
        env_id = await resolver.resolve_optional(EntityKind.ENVIRONMENT, "prod")
        agent_id = await resolver.resolve(
            EntityKind.AGENT, "my-agent", Scope(environment_id=env_id)
        )
    """

    def __init__(self, directory: EntityDirectory) -> None:
        self._directory = directory

    async def resolve(
        self, kind: EntityKind, key: str, scope: Scope | None = None
    ) -> CanonicalId:
        return await resolve_key(kind, key, self._directory.lister(kind), scope)

    async def resolve_optional(
        self, kind: EntityKind, key: str | None, scope: Scope | None = None
    ) -> CanonicalId | None:
        """Like resolve(), but an empty or missing key resolves to None."""
        if not key:
            return None
        return await self.resolve(kind, key, scope)


def build_keys(entities: Sequence[NamedEntity]) -> list[str]:
    """
    Build shell-completion candidates from a full listing.

    Entities whose name is unique in the listing are offered by name;
    entities whose name collides are offered by ID. Input order is kept.
    """
    counts = Counter(e.name for e in entities)
    return [e.name if counts[e.name] == 1 else e.id for e in entities]
