"""Caller-side async helpers: cooperative cancellation and time-boxing."""

from __future__ import annotations

import asyncio
import inspect
from contextlib import suppress
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable

T = TypeVar("T")


class CancellationToken:
    """Cooperative cancellation token backed by ``asyncio.Event``."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()


async def run_with_timeout(
    awaitable: Awaitable[T],
    timeout_seconds: float,
    cancel_token: CancellationToken | None = None,
) -> T:
    """Await ``awaitable`` until it finishes, the time-box expires, or the token fires.

    Raises ``TimeoutError`` on expiry and ``asyncio.CancelledError`` on
    cancellation; in both cases the underlying task is cancelled and awaited.
    """
    if timeout_seconds <= 0:
        _close_unscheduled(awaitable)
        raise ValueError("timeout_seconds must be > 0")
    if cancel_token is not None and cancel_token.is_cancelled:
        _close_unscheduled(awaitable)
        raise asyncio.CancelledError("operation cancelled")

    work: asyncio.Future[T] = asyncio.ensure_future(awaitable)
    waiters: set[asyncio.Future[object]] = {work}
    watcher: asyncio.Task[None] | None = None
    if cancel_token is not None:
        watcher = asyncio.create_task(cancel_token.wait())
        waiters.add(watcher)

    try:
        done, _ = await asyncio.wait(
            waiters, timeout=timeout_seconds, return_when=asyncio.FIRST_COMPLETED
        )
        if work in done:
            return work.result()

        await _cancel_and_drain(work)
        if watcher is not None and watcher in done:
            raise asyncio.CancelledError("operation cancelled")
        raise TimeoutError(f"operation timed out after {timeout_seconds} seconds")
    except asyncio.CancelledError:
        await _cancel_and_drain(work)
        raise
    finally:
        if watcher is not None:
            await _cancel_and_drain(watcher)


async def _cancel_and_drain(future: asyncio.Future[object]) -> None:
    if future.done():
        return
    future.cancel()
    with suppress(asyncio.CancelledError):
        await future


def _close_unscheduled(awaitable: Awaitable[object]) -> None:
    # Raw coroutine objects that never ran would warn "never awaited" at GC time.
    if inspect.iscoroutine(awaitable):
        awaitable.close()


__all__ = ["CancellationToken", "run_with_timeout"]
