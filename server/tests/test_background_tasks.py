"""Best-effort background dispatch tests."""

import asyncio

import pytest
from revvdoc.utils.background_tasks import BackgroundTaskDispatcher


@pytest.mark.asyncio
async def test_failures_are_contained(caplog):
    dispatcher = BackgroundTaskDispatcher()

    async def boom():
        raise RuntimeError("side effect failed")

    task = dispatcher.dispatch(boom(), name="boom")
    await dispatcher.drain()

    assert task.done()
    assert task.exception() is None
    assert "Background task boom failed" in caplog.text
    assert dispatcher.pending == 0


@pytest.mark.asyncio
async def test_drain_waits_for_nested_tasks():
    dispatcher = BackgroundTaskDispatcher()
    finished = []

    async def child():
        await asyncio.sleep(0)
        finished.append("child")

    async def parent():
        dispatcher.dispatch(child(), name="child")
        finished.append("parent")

    dispatcher.dispatch(parent(), name="parent")
    await dispatcher.drain()

    assert finished == ["parent", "child"]
    assert dispatcher.pending == 0
