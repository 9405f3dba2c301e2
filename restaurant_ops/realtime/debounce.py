"""
Cancellable timers for event-driven UI workflows.

Everything runs on the event loop; a timer is an asyncio task that sleeps
and then invokes its callback. Cancelling the task also cancels whatever
the callback is still awaiting, so a stale fetch can never land.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, Generic, Hashable, Optional, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)

Callback = Callable[[], Any]


async def _sleep_then_call(delay: float, callback: Callback) -> None:
    await asyncio.sleep(delay)
    try:
        result = callback()
        if inspect.isawaitable(result):
            await result
    except asyncio.CancelledError:
        raise
    except Exception:
        logger.exception("Timer callback failed")


def _cancel_task(task: Optional[asyncio.Task]) -> None:
    # A callback may close its own owner; never cancel the running task.
    if task is None or task.done() or task is asyncio.current_task():
        return
    task.cancel()


class SingleSlotTimer:
    """
    One pending callback at most; scheduling again replaces it.
    """

    def __init__(self, delay: float):
        self.delay = delay
        self._task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def schedule(self, callback: Callback, delay: Optional[float] = None) -> None:
        self.cancel()
        wait = self.delay if delay is None else delay
        self._task = asyncio.get_running_loop().create_task(_sleep_then_call(wait, callback))

    def cancel(self) -> None:
        _cancel_task(self._task)
        self._task = None

    async def wait(self) -> None:
        """Wait for the pending callback (if any) to finish."""
        task = self._task
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            return


class KeyedTimers(Generic[K]):
    """
    Independent single-slot timers, one per key (e.g. one per day).
    """

    def __init__(self, delay: float):
        self.delay = delay
        self._tasks: Dict[K, asyncio.Task] = {}

    def pending_keys(self) -> list:
        return [key for key, task in self._tasks.items() if not task.done()]

    def schedule(self, key: K, callback: Callback, delay: Optional[float] = None) -> None:
        self.cancel(key)
        wait = self.delay if delay is None else delay
        task = asyncio.get_running_loop().create_task(_sleep_then_call(wait, callback))
        self._tasks[key] = task
        task.add_done_callback(lambda done, key=key: self._forget(key, done))

    def _forget(self, key: K, task: asyncio.Task) -> None:
        if self._tasks.get(key) is task:
            del self._tasks[key]

    def cancel(self, key: K) -> None:
        _cancel_task(self._tasks.pop(key, None))

    def cancel_all(self) -> None:
        for key in list(self._tasks):
            self.cancel(key)

    async def wait_all(self) -> None:
        tasks = list(self._tasks.values())
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)


class Debouncer(Generic[K]):
    """
    Trailing-edge debounce plus a "last issued key" guard.

    `trigger(key)` (re)starts the delay; when it expires `action(key)` runs.
    A key equal to the last issued one is dropped, and a run already in
    flight for that key is left alone. The action returns True on success;
    on failure or cancellation the key is forgotten so the same range can
    be retried later.
    """

    def __init__(self, delay: float, action: Callable[[K], Awaitable[bool]]):
        self._timer = SingleSlotTimer(delay)
        self._action = action
        self._last_issued: Optional[K] = None
        self._in_flight: Optional[object] = None

    @property
    def pending(self) -> bool:
        return self._timer.pending

    @property
    def in_flight(self) -> bool:
        return self._in_flight is not None

    @property
    def last_issued_key(self) -> Optional[K]:
        return self._last_issued

    def trigger(self, key: K) -> bool:
        """Returns False when the key was deduplicated."""
        if key == self._last_issued:
            if not self.in_flight:
                # A sleeping run for some other key is stale now
                self._timer.cancel()
            return False
        self._stop()
        self._timer.schedule(lambda: self._fire(key))
        return True

    async def run_now(self, key: K) -> bool:
        """
        Issue without delay and wait for the run, still deduplicated.

        The run occupies the timer slot, so cancel() and reset() stop it
        like any debounced run.
        """
        if key == self._last_issued:
            if self.in_flight:
                await self._timer.wait()
            return False
        self._stop()
        self._timer.schedule(lambda: self._fire(key), delay=0)
        await self._timer.wait()
        return True

    async def _fire(self, key: K) -> None:
        token = object()
        self._in_flight = token
        self._last_issued = key
        succeeded = False
        try:
            succeeded = await self._action(key)
        finally:
            if self._in_flight is token:
                self._in_flight = None
                if not succeeded:
                    self._last_issued = None

    def _stop(self) -> None:
        if self._in_flight is not None:
            # The running key never lands; forget it now, not when the task unwinds
            self._in_flight = None
            self._last_issued = None
        self._timer.cancel()

    async def wait(self) -> None:
        await self._timer.wait()

    def cancel(self) -> None:
        self._stop()

    def reset(self) -> None:
        self._stop()
        self._last_issued = None
