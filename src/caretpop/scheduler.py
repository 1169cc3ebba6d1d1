"""Deferred callbacks on the UI event loop.

Everything runs on one thread; "later" only ever means a later turn of
the same asyncio loop.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Protocol


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_soon(self, callback: Callable[[], None]) -> Cancellable: ...

    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable: ...


class _Done:
    """Handle for a callback that already ran synchronously."""

    def cancel(self) -> None:
        pass


class LoopScheduler:
    """Schedules onto an asyncio loop (the running one unless *loop* is given).

    Without a running loop ``call_soon`` runs the callback immediately and
    ``call_later`` raises ``RuntimeError``: there is nothing that could
    fire a timer.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is not None:
            return self._loop
        return asyncio.get_running_loop()

    def call_soon(self, callback: Callable[[], None]) -> Cancellable:
        try:
            loop = self._get_loop()
        except RuntimeError:
            callback()
            return _Done()
        return loop.call_soon(callback)

    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable:
        return self._get_loop().call_later(delay, callback)
