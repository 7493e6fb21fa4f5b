from __future__ import annotations

import asyncio
from collections.abc import Callable

from src.domain.entities.session import SessionChange


class SessionChangeStream:
    """Cancellable async stream of provider session changes.

    Producers call ``publish`` (safe from synchronous callbacks running on the
    event loop thread); the consumer iterates with ``async for``. ``cancel``
    runs the registered release callbacks once and ends the iteration.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[SessionChange | None] = asyncio.Queue()
        self._on_cancel: list[Callable[[], None]] = []
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def add_cancel_callback(self, callback: Callable[[], None]) -> None:
        if self._cancelled:
            callback()
            return
        self._on_cancel.append(callback)

    def publish(self, change: SessionChange) -> None:
        if self._cancelled:
            return
        self._queue.put_nowait(change)

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        callbacks, self._on_cancel = self._on_cancel, []
        try:
            for callback in callbacks:
                callback()
        finally:
            self._queue.put_nowait(None)

    def __aiter__(self) -> SessionChangeStream:
        return self

    async def __anext__(self) -> SessionChange:
        if self._cancelled:
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is None or self._cancelled:
            raise StopAsyncIteration
        return item
