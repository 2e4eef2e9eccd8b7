"""Tests for key resolution and completion candidates."""

import pytest

from calyptia_cli.errors import AmbiguousKeyError, EntityNotFoundError
from calyptia_cli.resolve.keys import RESOLVE_LIMIT, KeyResolver, build_keys, resolve_key
from calyptia_cli.types import EntityKind, ListFilter, NamedEntity, Scope

ID_A = "0d3f5ee1-6a3a-4c2e-9b8b-9c7a1e2d3f40"
ID_B = "1e4a6ff2-7b4b-4d3f-8c9c-0d8b2f3e4a51"
ID_C = "2f5b7003-8c5c-4e40-9dad-1e9c304f5b62"


class FakeLister:
    """Lists entities by exact name, honouring the limit, and records filters."""

    def __init__(self, entities):
        self.entities = list(entities)
        self.filters: list[ListFilter] = []

    async def __call__(self, flt: ListFilter):
        self.filters.append(flt)
        matches = [e for e in self.entities if flt.name is None or e.name == flt.name]
        if flt.scope.environment_id:
            matches = [e for e in matches if e.environment_id == flt.scope.environment_id]
        if flt.last > 0:
            matches = matches[: flt.last]
        return matches


class FakeDirectory:
    def __init__(self, by_kind):
        self.by_kind = {kind: FakeLister(entities) for kind, entities in by_kind.items()}

    def lister(self, kind):
        return self.by_kind[kind]


class TestResolveKey:
    """Tests for resolve_key()."""

    @pytest.mark.asyncio
    async def test_unique_name_resolves_to_id(self):
        """A name matching exactly one entity resolves to its ID."""
        lister = FakeLister([NamedEntity(id=ID_A, name="a"), NamedEntity(id=ID_B, name="b")])
        assert await resolve_key(EntityKind.AGENT, "a", lister) == ID_A

    @pytest.mark.asyncio
    async def test_lookup_asks_for_two_results(self):
        """The listing is filtered by name and capped at two results."""
        lister = FakeLister([])
        await resolve_key(EntityKind.AGENT, ID_A, lister)
        assert lister.filters == [ListFilter(name=ID_A, scope=Scope(), last=RESOLVE_LIMIT)]
        assert RESOLVE_LIMIT == 2

    @pytest.mark.asyncio
    async def test_id_key_without_matches_is_trusted(self):
        """An ID-shaped key is returned as-is when no name matches."""
        assert await resolve_key(EntityKind.FLEET, ID_C, FakeLister([])) == ID_C

    @pytest.mark.asyncio
    async def test_name_match_wins_over_id_shape(self):
        """An entity named like an ID resolves to that entity's own ID."""
        lister = FakeLister([NamedEntity(id=ID_A, name=ID_B)])
        assert await resolve_key(EntityKind.PIPELINE, ID_B, lister) == ID_A

    @pytest.mark.asyncio
    async def test_ambiguous_id_shaped_name_is_trusted_as_id(self):
        """Several entities named like an ID fall back to the key itself."""
        lister = FakeLister([NamedEntity(id=ID_A, name=ID_C), NamedEntity(id=ID_B, name=ID_C)])
        assert await resolve_key(EntityKind.PIPELINE, ID_C, lister) == ID_C

    @pytest.mark.asyncio
    async def test_unknown_name_raises_not_found(self):
        """A name with no match and no ID shape is not found."""
        with pytest.raises(EntityNotFoundError) as exc_info:
            await resolve_key(EntityKind.CORE_INSTANCE, "missing", FakeLister([]))

        assert exc_info.value.kind == EntityKind.CORE_INSTANCE
        assert exc_info.value.key == "missing"
        assert str(exc_info.value) == "could not find core instance 'missing'"

    @pytest.mark.asyncio
    async def test_duplicate_name_raises_ambiguous(self):
        """A name shared by several entities is ambiguous."""
        lister = FakeLister([NamedEntity(id=ID_A, name="dup"), NamedEntity(id=ID_B, name="dup")])
        with pytest.raises(AmbiguousKeyError) as exc_info:
            await resolve_key(EntityKind.AGENT, "dup", lister)

        assert str(exc_info.value) == "ambiguous agent name 'dup', use ID instead"

    @pytest.mark.asyncio
    async def test_scope_is_forwarded(self):
        """The scope narrows the listing."""
        lister = FakeLister(
            [
                NamedEntity(id=ID_A, name="dup", environment_id="env-1"),
                NamedEntity(id=ID_B, name="dup", environment_id="env-2"),
            ]
        )
        resolved = await resolve_key(
            EntityKind.AGENT, "dup", lister, Scope(environment_id="env-2")
        )

        assert resolved == ID_B
        assert lister.filters[0].scope == Scope(environment_id="env-2")

    @pytest.mark.asyncio
    async def test_listing_errors_propagate(self):
        """Errors from the listing are not turned into resolution errors."""

        async def failing(flt):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            await resolve_key(EntityKind.AGENT, "a", failing)


class TestKeyResolver:
    """Tests for KeyResolver."""

    @pytest.mark.asyncio
    async def test_resolve_uses_lister_of_kind(self):
        directory = FakeDirectory(
            {
                EntityKind.AGENT: [NamedEntity(id=ID_A, name="shared")],
                EntityKind.FLEET: [NamedEntity(id=ID_B, name="shared")],
            }
        )
        resolver = KeyResolver(directory)

        assert await resolver.resolve(EntityKind.AGENT, "shared") == ID_A
        assert await resolver.resolve(EntityKind.FLEET, "shared") == ID_B

    @pytest.mark.asyncio
    async def test_resolve_optional_empty_key(self):
        """An empty key resolves to None without listing."""
        directory = FakeDirectory({EntityKind.ENVIRONMENT: []})
        resolver = KeyResolver(directory)

        assert await resolver.resolve_optional(EntityKind.ENVIRONMENT, "") is None
        assert await resolver.resolve_optional(EntityKind.ENVIRONMENT, None) is None
        assert directory.by_kind[EntityKind.ENVIRONMENT].filters == []

    @pytest.mark.asyncio
    async def test_resolve_optional_with_key(self):
        directory = FakeDirectory({EntityKind.ENVIRONMENT: [NamedEntity(id=ID_C, name="prod")]})
        resolver = KeyResolver(directory)

        assert await resolver.resolve_optional(EntityKind.ENVIRONMENT, "prod") == ID_C


class TestBuildKeys:
    """Tests for build_keys()."""

    def test_empty(self):
        assert build_keys([]) == []

    def test_unique_names(self):
        entities = [NamedEntity(id="id1", name="a"), NamedEntity(id="id2", name="b")]
        assert build_keys(entities) == ["a", "b"]

    def test_colliding_names_use_ids(self):
        """Every entity of a colliding name is offered by ID."""
        entities = [
            NamedEntity(id="id1", name="a"),
            NamedEntity(id="id2", name="b"),
            NamedEntity(id="id3", name="a"),
        ]
        assert build_keys(entities) == ["id1", "b", "id3"]

    def test_all_colliding(self):
        entities = [NamedEntity(id="id1", name="x"), NamedEntity(id="id2", name="x")]
        assert build_keys(entities) == ["id1", "id2"]

    def test_keys_are_unique(self):
        entities = [
            NamedEntity(id="id1", name="a"),
            NamedEntity(id="id2", name="a"),
            NamedEntity(id="id3", name="b"),
            NamedEntity(id="id4", name="c"),
            NamedEntity(id="id5", name="c"),
        ]
        keys = build_keys(entities)
        assert len(keys) == len(set(keys)) == len(entities)
