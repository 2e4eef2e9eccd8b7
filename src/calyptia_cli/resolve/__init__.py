"""
Entity key resolution.

Turns operator-supplied keys (names or IDs) into canonical IDs and builds
shell-completion candidates with the same collision rule.
"""

from calyptia_cli.resolve.directory import CloudDirectory, EntityDirectory
from calyptia_cli.resolve.identifiers import is_canonical_id
from calyptia_cli.resolve.keys import KeyResolver, build_keys, resolve_key

__all__ = [
    "CloudDirectory",
    "EntityDirectory",
    "KeyResolver",
    "build_keys",
    "is_canonical_id",
    "resolve_key",
]
