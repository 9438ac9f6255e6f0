import asyncio

import pytest

from mockserver_launcher.deferred import Deferred


@pytest.mark.asyncio
class TestDeferred:
    @pytest.mark.timeout(5)
    async def test_resolve_settles_future(self):
        deferred = Deferred[int]()
        assert not deferred.done()

        assert deferred.resolve(7) is True
        assert deferred.done()
        assert await deferred == 7
        assert await deferred.future == 7

    @pytest.mark.timeout(5)
    async def test_second_resolve_is_ignored(self):
        """
        Resolving twice neither raises nor changes the value
        """
        deferred = Deferred[str]()
        deferred.resolve("first")

        assert deferred.resolve("second") is False
        assert await deferred == "first"

    @pytest.mark.timeout(5)
    async def test_reject_after_resolve_is_ignored(self):
        deferred = Deferred[str]()
        deferred.resolve("ok")

        assert deferred.reject(RuntimeError("late")) is False
        assert await deferred == "ok"

    @pytest.mark.timeout(5)
    async def test_reject_raises_on_await(self):
        deferred = Deferred[None]()
        deferred.reject(RuntimeError("boom"))

        with pytest.raises(RuntimeError, match="boom"):
            await deferred

        assert deferred.resolve(None) is False

    @pytest.mark.timeout(5)
    async def test_done_callbacks_fire_once(self):
        deferred = Deferred[int]()
        fired: list[int] = []
        deferred.future.add_done_callback(lambda f: fired.append(f.result()))

        deferred.resolve(1)
        deferred.resolve(2)
        await asyncio.sleep(0)
        await asyncio.sleep(0)

        assert fired == [1]

    @pytest.mark.timeout(5)
    async def test_settle_from_another_task(self):
        """
        A producer task settles the completion the consumer is awaiting
        """
        deferred = Deferred[str]()

        async def producer():
            await asyncio.sleep(0.01)
            deferred.resolve("done")

        task = asyncio.create_task(producer())
        assert await deferred == "done"
        await task

    @pytest.mark.timeout(5)
    async def test_rejected_is_pre_settled(self):
        deferred = Deferred.rejected(ValueError("bad options"))

        assert deferred.done()
        with pytest.raises(ValueError, match="bad options"):
            await deferred

    @pytest.mark.timeout(5)
    async def test_cancelled_future_ignores_settlement(self):
        deferred = Deferred[int]()
        deferred.future.cancel()

        assert deferred.resolve(1) is False
        assert deferred.reject(RuntimeError("x")) is False


def test_requires_running_loop():
    with pytest.raises(RuntimeError):
        Deferred[int]()


def test_explicit_loop_without_running_loop():
    loop = asyncio.new_event_loop()
    try:
        deferred = Deferred[int](loop)
        deferred.resolve(3)
        assert loop.run_until_complete(deferred.future) == 3
    finally:
        loop.close()
