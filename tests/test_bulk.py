"""Tests for run_all."""

import asyncio

import pytest

from calyptia_cli.bulk import run_all
from calyptia_cli.errors import BulkOperationError


@pytest.mark.asyncio
async def test_empty_input_returns_zero():
    async def op(item):
        raise AssertionError("should not be called")

    assert await run_all([], op) == 0


@pytest.mark.asyncio
async def test_all_succeed():
    seen = []

    async def op(item):
        seen.append(item)

    assert await run_all(["a", "b", "c"], op) == 3
    assert sorted(seen) == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_failure_does_not_stop_other_items():
    """Every item is attempted even when one fails early."""
    seen = []

    async def op(item):
        if item == 3:
            raise ValueError("item 3 failed")
        await asyncio.sleep(0)
        seen.append(item)

    with pytest.raises(BulkOperationError) as exc_info:
        await run_all([1, 2, 3, 4, 5], op)

    assert sorted(seen) == [1, 2, 4, 5]
    err = exc_info.value
    assert err.total == 5
    assert err.failed == 1
    assert err.succeeded == 4
    assert isinstance(err.causes[0], ValueError)
    assert str(err) == "1 of 5 operations failed: item 3 failed"


@pytest.mark.asyncio
async def test_causes_kept_in_input_order():
    async def op(item):
        if item % 2 == 0:
            raise RuntimeError(f"failed {item}")

    with pytest.raises(BulkOperationError) as exc_info:
        await run_all([1, 2, 3, 4], op)

    assert [str(c) for c in exc_info.value.causes] == ["failed 2", "failed 4"]


@pytest.mark.asyncio
async def test_operations_run_concurrently():
    """All operations are in flight before any of them completes."""
    started = 0
    all_started = asyncio.Event()

    async def op(item):
        nonlocal started
        started += 1
        if started == 3:
            all_started.set()
        await asyncio.wait_for(all_started.wait(), timeout=1)

    assert await run_all([1, 2, 3], op) == 3
