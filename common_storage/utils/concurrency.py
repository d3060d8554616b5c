"""Bounded-concurrency helpers for bulk storage operations.

``p_map`` runs a coroutine function over a list with at most
``concurrency`` calls in flight; ``map_stream`` does the same over an
async iterator, pulling lazily.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable
from typing import TypeVar

T = TypeVar("T")
R = TypeVar("R")


async def p_map(
    items: Iterable[T],
    fn: Callable[[T], Awaitable[R]],
    concurrency: int = 8,
) -> list[R]:
    """Map ``fn`` over ``items`` with bounded concurrency.

    Results are returned in input order. The first exception propagates
    after the remaining calls are cancelled and awaited; calls that
    already completed stay in effect.

    Args:
        items: Input items.
        fn: Async function applied to each item.
        concurrency: Maximum number of concurrent calls.

    Returns:
        List of results in input order.
    """
    items = list(items)
    if not items:
        return []

    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def _run(item: T) -> R:
        async with semaphore:
            return await fn(item)

    tasks = [asyncio.ensure_future(_run(item)) for item in items]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


async def map_stream(
    source: AsyncIterator[T],
    fn: Callable[[T], Awaitable[R]],
    concurrency: int = 16,
) -> AsyncIterator[R]:
    """Map ``fn`` over an async iterator, ``concurrency`` items at a time.

    Items are pulled from ``source`` in windows; each window is processed
    concurrently and yielded in source order before the next is pulled.
    """
    window: list[T] = []
    async for item in source:
        window.append(item)
        if len(window) >= concurrency:
            for result in await p_map(window, fn, concurrency):
                yield result
            window = []

    if window:
        for result in await p_map(window, fn, concurrency):
            yield result


async def iterate(items: Iterable[T]) -> AsyncIterator[T]:
    """Wrap a sync iterable into an async iterator."""
    for item in items:
        yield item


async def collect(source: AsyncIterator[T]) -> list[T]:
    """Drain an async iterator into a list."""
    return [item async for item in source]
