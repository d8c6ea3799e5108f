"""
Reader/Writer Lock

asyncio lock that admits many concurrent readers or a single writer.
Waiting writers block new readers so writes are not starved.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator


class ReadWriteLock:
    """
    Shared/exclusive lock for asyncio tasks.

    Usage:
        lock = ReadWriteLock()

        async with lock.read():
            ...  # shared access

        async with lock.write():
            ...  # exclusive access
    """

    def __init__(self):
        self._cond = asyncio.Condition()
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @property
    def readers(self) -> int:
        return self._readers

    @property
    def locked(self) -> bool:
        """True while a writer holds the lock"""
        return self._writer

    @asynccontextmanager
    async def read(self) -> AsyncIterator[None]:
        """Acquire shared access"""
        async with self._cond:
            await self._cond.wait_for(
                lambda: not self._writer and self._writers_waiting == 0
            )
            self._readers += 1
        try:
            yield
        finally:
            async with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @asynccontextmanager
    async def write(self) -> AsyncIterator[None]:
        """Acquire exclusive access"""
        async with self._cond:
            self._writers_waiting += 1
            try:
                await self._cond.wait_for(
                    lambda: not self._writer and self._readers == 0
                )
            finally:
                self._writers_waiting -= 1
                # Readers parked behind a cancelled writer must re-check
                self._cond.notify_all()
            self._writer = True
        try:
            yield
        finally:
            async with self._cond:
                self._writer = False
                self._cond.notify_all()
