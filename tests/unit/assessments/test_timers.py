"""Tests for phase timers."""

import asyncio

import pytest

from assessments.timers import CountdownTimer, DelayedCall, invoke_callback


class TestCountdownTimer:

    @pytest.mark.asyncio
    async def test_manual_ticks_expire_once(self):
        expired = []
        ticks = []
        timer = CountdownTimer(
            2,
            on_expire=lambda: expired.append(True),
            on_tick=ticks.append,
            interval=None,
        ).start()

        await timer.tick()
        await timer.tick()
        await timer.tick()

        assert ticks == [1, 0]
        assert expired == [True]
        assert timer.expired

    @pytest.mark.asyncio
    async def test_cancelled_timer_never_fires(self):
        expired = []
        timer = CountdownTimer(1, on_expire=lambda: expired.append(True), interval=None)

        timer.cancel()
        await timer.tick()

        assert expired == []
        assert timer.remaining == 1

    @pytest.mark.asyncio
    async def test_cancel_from_inside_callback(self):
        calls = []

        async def on_expire():
            calls.append("expire")
            timer.cancel()

        timer = CountdownTimer(1, on_expire=on_expire, interval=0.001).start()
        await asyncio.sleep(0.05)

        assert calls == ["expire"]
        assert timer.cancelled
        assert not timer.running

    @pytest.mark.asyncio
    async def test_automatic_countdown(self):
        done = asyncio.Event()
        timer = CountdownTimer(3, on_expire=done.set, interval=0.001).start()

        await asyncio.wait_for(done.wait(), timeout=1)

        assert timer.remaining == 0

    @pytest.mark.asyncio
    async def test_callback_error_goes_to_on_error(self):
        errors = []

        def on_expire():
            raise RuntimeError("evaluation failed")

        timer = CountdownTimer(1, on_expire=on_expire, on_error=errors.append, interval=0.001).start()
        await asyncio.sleep(0.05)

        assert [str(e) for e in errors] == ["evaluation failed"]
        assert timer.expired
        assert not timer.running

    def test_negative_seconds_clamped(self):
        assert CountdownTimer(-5, interval=None).remaining == 0


class TestDelayedCall:

    @pytest.mark.asyncio
    async def test_fire_runs_once(self):
        calls = []
        call = DelayedCall(None, lambda: calls.append(1)).start()

        await call.fire()
        await call.fire()

        assert calls == [1]
        assert call.fired

    @pytest.mark.asyncio
    async def test_reschedule_restarts_delay(self):
        calls = []
        call = DelayedCall(0.1, lambda: calls.append(1)).start()

        await asyncio.sleep(0.06)
        call.reschedule()
        await asyncio.sleep(0.06)
        assert calls == []

        await asyncio.sleep(0.1)
        assert calls == [1]

    @pytest.mark.asyncio
    async def test_cancel_before_delay(self):
        calls = []
        call = DelayedCall(0.01, lambda: calls.append(1)).start()
        call.cancel()

        await asyncio.sleep(0.03)

        assert calls == []

    def test_start_without_loop_is_manual(self):
        call = DelayedCall(0.01, lambda: None).start()
        assert not call.running


@pytest.mark.asyncio
async def test_invoke_callback_awaits_coroutines():
    seen = []

    async def async_callback(value):
        seen.append(value)

    await invoke_callback(async_callback, "a")
    await invoke_callback(seen.append, "b")
    await invoke_callback(None, "c")

    assert seen == ["a", "b"]
