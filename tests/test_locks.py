"""Tests for the asyncio reader/writer lock."""

from __future__ import annotations

import asyncio

from scada_backend.common.locks import ReadWriteLock


class TestReadWriteLock:
    """Tests for ReadWriteLock."""

    async def test_readers_share_the_lock(self) -> None:
        """Several readers hold the lock at the same time."""
        lock = ReadWriteLock()
        inside = asyncio.Event()
        release = asyncio.Event()
        peak = 0

        async def reader() -> None:
            nonlocal peak
            async with lock.read():
                peak = max(peak, lock.readers)
                if lock.readers == 3:
                    inside.set()
                await release.wait()

        tasks = [asyncio.create_task(reader()) for _ in range(3)]
        await asyncio.wait_for(inside.wait(), timeout=1)
        release.set()
        await asyncio.gather(*tasks)

        assert peak == 3
        assert lock.readers == 0

    async def test_writer_waits_for_readers(self) -> None:
        """A writer only enters once the active reader leaves."""
        lock = ReadWriteLock()
        order: list[str] = []
        reader_in = asyncio.Event()
        release_reader = asyncio.Event()

        async def reader() -> None:
            async with lock.read():
                order.append("read-start")
                reader_in.set()
                await release_reader.wait()
                order.append("read-end")

        async def writer() -> None:
            async with lock.write():
                order.append("write")

        reader_task = asyncio.create_task(reader())
        await reader_in.wait()
        writer_task = asyncio.create_task(writer())
        await asyncio.sleep(0.01)

        assert order == ["read-start"]

        release_reader.set()
        await asyncio.gather(reader_task, writer_task)

        assert order == ["read-start", "read-end", "write"]

    async def test_writer_is_exclusive(self) -> None:
        """Readers arriving while a writer holds the lock wait for it."""
        lock = ReadWriteLock()
        order: list[str] = []
        writer_in = asyncio.Event()
        release_writer = asyncio.Event()

        async def writer() -> None:
            async with lock.write():
                assert lock.locked
                writer_in.set()
                await release_writer.wait()
                order.append("write")

        async def reader() -> None:
            async with lock.read():
                order.append("read")

        writer_task = asyncio.create_task(writer())
        await writer_in.wait()
        reader_task = asyncio.create_task(reader())
        await asyncio.sleep(0.01)

        assert order == []

        release_writer.set()
        await asyncio.gather(writer_task, reader_task)

        assert order == ["write", "read"]
        assert not lock.locked

    async def test_cancelled_writer_does_not_block_readers(self) -> None:
        """A writer cancelled while waiting lets queued readers proceed."""
        lock = ReadWriteLock()
        reader_in = asyncio.Event()
        release_reader = asyncio.Event()

        async def long_reader() -> None:
            async with lock.read():
                reader_in.set()
                await release_reader.wait()

        async def writer() -> None:
            async with lock.write():
                pass

        long_task = asyncio.create_task(long_reader())
        await reader_in.wait()
        writer_task = asyncio.create_task(writer())
        await asyncio.sleep(0.01)

        writer_task.cancel()
        await asyncio.gather(writer_task, return_exceptions=True)

        async def quick_reader() -> str:
            async with lock.read():
                return "ok"

        assert await asyncio.wait_for(quick_reader(), timeout=1) == "ok"

        release_reader.set()
        await long_task
