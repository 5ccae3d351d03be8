import asyncio

import pytest

from app.__main__ import drain


@pytest.mark.asyncio
async def test_drain_cancels_in_flight_updates():
    started = asyncio.Event()

    async def handler():
        started.set()
        await asyncio.sleep(3600)

    pending = {asyncio.create_task(handler()) for _ in range(3)}
    await started.wait()

    await drain(pending)

    assert all(task.cancelled() for task in pending)


@pytest.mark.asyncio
async def test_drain_with_nothing_pending():
    await drain(set())
