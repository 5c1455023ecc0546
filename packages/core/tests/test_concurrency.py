"""Tests for the bounded concurrent fan-out helper."""

import asyncio

import pytest

from prcritic_core.utils.concurrency import gather_bounded


async def test_results_keep_input_order():
    async def work(value, delay):
        await asyncio.sleep(delay)
        return value

    factories = [lambda v=v, d=d: work(v, d) for v, d in [("a", 0.03), ("b", 0.0), ("c", 0.01)]]
    assert await gather_bounded(factories, limit=3) == ["a", "b", "c"]


async def test_never_exceeds_limit():
    in_flight = 0
    peak = 0

    async def work():
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1

    await gather_bounded([work for _ in range(10)], limit=3)
    assert peak == 3


async def test_empty_input():
    assert await gather_bounded([], limit=4) == []


async def test_first_error_propagates():
    async def ok():
        await asyncio.sleep(0.01)
        return 1

    async def bad():
        raise ValueError("nope")

    with pytest.raises(ValueError, match="nope"):
        await gather_bounded([ok, bad, ok], limit=2)
