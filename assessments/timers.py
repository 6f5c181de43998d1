"""
Cancellable timer handles scoped to a phase.

Each handle owns at most one asyncio task. Cancelling a handle guarantees its
callback will not fire afterwards, including when the cancel comes from inside
the callback chain of that same handle (an auto-submit that moves on to the
next question cancels the countdown that triggered it).

When no event loop is running, or ``interval`` is None, handles are driven
manually through ``tick()`` / ``fire()``.
"""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, Union

logger = logging.getLogger(__name__)

Callback = Callable[[], Union[None, Awaitable[None]]]


async def invoke_callback(callback: Optional[Callable[..., Any]], *args: Any) -> None:
    if callback is None:
        return
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


class TimerHandle:
    """Common cancellation behaviour for phase timers."""

    def __init__(self, name: str):
        self.name = name
        self._task: Optional[asyncio.Task] = None
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def _spawn(self, coro_factory: Callable[[], Awaitable[None]]) -> bool:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug(f"No running loop, timer '{self.name}' is manual")
            return False
        self._task = loop.create_task(coro_factory(), name=f"timer:{self.name}")
        return True

    def cancel(self) -> None:
        """Stop the timer. Safe to call repeatedly and from its own callback."""
        if self._cancelled:
            return
        self._cancelled = True
        task = self._task
        self._task = None
        if task is None or task.done():
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        # Never cancel the task we are running in; the flag stops it instead.
        if task is not current:
            task.cancel()
        logger.debug(f"Timer '{self.name}' cancelled")


class CountdownTimer(TimerHandle):
    """
    Whole-second countdown that calls ``on_expire`` once when it reaches zero.

    Args:
        seconds: Starting value of ``remaining``
        on_expire: Called (and awaited if async) when ``remaining`` hits zero
        on_tick: Called with the new ``remaining`` after every tick
        on_error: Receives an exception raised by a callback during an
            automatic tick; the countdown stops there
        interval: Seconds between automatic ticks; None for manual driving
        name: Label used in logs
    """

    def __init__(
        self,
        seconds: int,
        on_expire: Optional[Callback] = None,
        on_tick: Optional[Callable[[int], Any]] = None,
        on_error: Optional[Callable[[Exception], Any]] = None,
        interval: Optional[float] = 1.0,
        name: str = "countdown",
    ):
        super().__init__(name)
        self.remaining = max(0, int(seconds))
        self.on_expire = on_expire
        self.on_tick = on_tick
        self.on_error = on_error
        self.interval = interval
        self._expired = False

    @property
    def expired(self) -> bool:
        return self._expired

    def start(self) -> "CountdownTimer":
        if self.interval is not None and not self._cancelled:
            self._spawn(self._run)
        return self

    async def _run(self) -> None:
        while not self._cancelled and not self._expired:
            await asyncio.sleep(self.interval)
            if self._cancelled:
                return
            try:
                await self.tick()
            except Exception as e:
                logger.error(f"Timer '{self.name}' callback failed", exc_info=True)
                await invoke_callback(self.on_error, e)
                return

    async def tick(self, seconds: int = 1) -> None:
        """Advance the countdown; fires ``on_expire`` when it reaches zero."""
        if self._cancelled or self._expired:
            return
        self.remaining = max(0, self.remaining - seconds)
        await invoke_callback(self.on_tick, self.remaining)
        if self.remaining == 0 and not self._cancelled:
            self._expired = True
            await invoke_callback(self.on_expire)


class DelayedCall(TimerHandle):
    """
    One-shot callback after ``delay`` seconds.

    ``reschedule`` restarts the delay (used by draft auto-save, which fires a
    fixed time after the last edit).
    """

    def __init__(
        self,
        delay: Optional[float],
        callback: Callback,
        name: str = "delayed-call",
    ):
        super().__init__(name)
        self.delay = delay
        self.callback = callback
        self._fired = False

    @property
    def fired(self) -> bool:
        return self._fired

    def start(self) -> "DelayedCall":
        if self.delay is not None and not self._cancelled:
            self._spawn(self._run)
        return self

    def reschedule(self) -> "DelayedCall":
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        self._cancelled = False
        self._fired = False
        return self.start()

    async def _run(self) -> None:
        await asyncio.sleep(self.delay)
        await self.fire()

    async def fire(self) -> None:
        """Run the callback now, unless cancelled or already fired."""
        if self._cancelled or self._fired:
            return
        self._fired = True
        await invoke_callback(self.callback)
