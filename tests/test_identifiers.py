"""Tests for canonical ID detection."""

import pytest

from calyptia_cli.resolve.identifiers import is_canonical_id


@pytest.mark.parametrize(
    "key",
    [
        "b7f2c3a0-2b8e-4f6a-9d3c-1e2f3a4b5c6d",
        "B7F2C3A0-2B8E-4F6A-9D3C-1E2F3A4B5C6D",
        "00000000-0000-0000-0000-000000000000",
    ],
)
def test_canonical_ids_are_detected(key):
    """UUID-shaped keys are IDs regardless of case."""
    assert is_canonical_id(key) is True


@pytest.mark.parametrize(
    "key",
    [
        "",
        "my-agent",
        "b7f2c3a02b8e4f6a9d3c1e2f3a4b5c6d",
        "b7f2c3a0-2b8e-4f6a-9d3c-1e2f3a4b5c6",
        " b7f2c3a0-2b8e-4f6a-9d3c-1e2f3a4b5c6d",
        "g7f2c3a0-2b8e-4f6a-9d3c-1e2f3a4b5c6d",
    ],
)
def test_other_keys_are_not_ids(key):
    """Names and malformed UUIDs are not IDs."""
    assert is_canonical_id(key) is False
