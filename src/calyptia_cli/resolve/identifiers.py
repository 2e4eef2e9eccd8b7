"""Syntactic classification of canonical IDs."""

import re

# Cloud IDs are UUIDs in their canonical textual form.
_UUID_RE = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
    re.IGNORECASE,
)


def is_canonical_id(key: str) -> bool:
    """
    Return True if key has the shape of a cloud ID.

    This is a pure syntactic check: it does not verify that an entity
    with this ID exists.
    """
    return bool(_UUID_RE.fullmatch(key))
