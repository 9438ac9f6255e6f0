from __future__ import annotations

import asyncio
from collections.abc import Generator
from typing import Any


class Deferred[T]:
    """
    Single-assignment completion over an asyncio.Future.

    Exactly one of resolve/reject settles the underlying future. Later calls
    are ignored and report False, so a long retry chain can share a single
    Deferred with the caller that is already awaiting it.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        if loop is None:
            loop = asyncio.get_running_loop()
        self._future: asyncio.Future[T] = loop.create_future()

    @classmethod
    def rejected(cls, error: BaseException) -> Deferred[Any]:
        deferred: Deferred[Any] = cls()
        deferred.reject(error)
        return deferred

    @property
    def future(self) -> asyncio.Future[T]:
        return self._future

    def done(self) -> bool:
        return self._future.done()

    def resolve(self, value: T) -> bool:
        if self._future.done():
            return False
        self._future.set_result(value)
        return True

    def reject(self, error: BaseException) -> bool:
        if self._future.done():
            return False
        self._future.set_exception(error)
        return True

    def __await__(self) -> Generator[Any, None, T]:
        return self._future.__await__()
