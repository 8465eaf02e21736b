"""Run steps synchronously when possible, asynchronously when a step awaits.

Hooks called by the engine (entity hooks, caller-supplied forkers, cloners
and mergers) may return awaitables. These helpers keep the traversal order of
the synchronous case: once a step returns an awaitable, the remaining steps
run inside a coroutine, one after the other, after that step resolves.

Usage:
    result = possibly_async(hook(value), lambda resolved: resolved + 1)
    if inspect.isawaitable(result):
        result = await result
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, TypeVar

T = TypeVar("T")
R = TypeVar("R")


def possibly_async(value: T | Awaitable[T], then: Callable[[T], R | Awaitable[R]]) -> Any:
    """Apply a continuation to a value that may still be pending.

    Args:
        value: A plain value or an awaitable resolving to one.
        then: Continuation receiving the resolved value.

    Returns:
        The continuation's result, or a coroutine producing it if anything
        along the way was awaitable.
    """
    if inspect.isawaitable(value):
        return _continue_after(value, then)
    return then(value)


async def _continue_after(pending: Awaitable[T], then: Callable[[T], Any]) -> Any:
    result = then(await pending)
    while inspect.isawaitable(result):
        result = await result
    return result


def for_each(items: Iterable[T], step: Callable[[T], Any]) -> Awaitable[None] | None:
    """Run a step for every item in order.

    Returns:
        None if every step completed synchronously, otherwise a coroutine
        that finishes the remaining steps in order.
    """
    iterator = iter(items)
    for item in iterator:
        result = step(item)
        if inspect.isawaitable(result):
            return _finish_for_each(result, iterator, step)
    return None


async def _finish_for_each(pending: Awaitable[Any], iterator: Any, step: Callable[[Any], Any]) -> None:
    await pending
    for item in iterator:
        result = step(item)
        if inspect.isawaitable(result):
            await result


def map_values(items: Iterable[T], transform: Callable[[T], R | Awaitable[R]]) -> Any:
    """Transform every item in order, collecting results into a list.

    Returns:
        The list of results, or a coroutine producing it if any transform
        returned an awaitable.
    """
    results: list[Any] = []

    def step(item: T) -> Any:
        return possibly_async(transform(item), results.append)

    return possibly_async(for_each(items, step), lambda _: results)
