"""Cooperative cancellation for a single run."""

import asyncio
import contextlib
from typing import Awaitable, TypeVar

from .errors import RunCancelled

T = TypeVar("T")


class CancelToken:
    """Set once by the caller, checked by the pipeline at every suspension point."""

    def __init__(self):
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise RunCancelled()

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable``, aborting it as soon as the token is cancelled."""
        if self._event.is_set():
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise RunCancelled()
        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
            if task in done:
                return task.result()
            raise RunCancelled()
        finally:
            waiter.cancel()
            if not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
