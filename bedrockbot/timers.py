from __future__ import annotations

"""Owned, cancellable timers for the bot controller.

Purpose: Keep every delayed and periodic callback in one registry so shutdown
can cancel all of them, and so a named timer (e.g. reconnect) is never armed
twice.

How: Callbacks are scheduled through a clock exposing `call_later` and
`create_task`; the running asyncio loop satisfies that interface, tests pass a
simulated clock.

"""

import itertools
import logging
from typing import Any, Callable, Coroutine, Dict, Optional, Protocol, Set


logger = logging.getLogger("bedrockbot.timers")


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Clock(Protocol):
    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle: ...

    def create_task(self, coro: Coroutine[Any, Any, Any]) -> Any: ...


class TimerRegistry:
    def __init__(self, clock: Clock) -> None:
        self._clock = clock
        self._handles: Dict[str, TimerHandle] = {}
        self._tasks: Set[Any] = set()
        self._ids = itertools.count(1)

    def once(self, delay: float, callback: Callable[..., Any], *args: Any, name: Optional[str] = None) -> str:
        """Run `callback(*args)` after `delay` seconds. A reused name replaces the old timer."""
        key = name or f"once-{next(self._ids)}"
        self.cancel(key)

        def _fire() -> None:
            self._handles.pop(key, None)
            self._run(key, callback, args)

        self._handles[key] = self._clock.call_later(delay, _fire)
        return key

    def every(self, interval: float, callback: Callable[..., Any], *args: Any, name: str) -> str:
        """Run `callback(*args)` every `interval` seconds until cancelled."""
        self.cancel(name)

        def _tick() -> None:
            # Re-arm first so a failing callback does not stop the cycle
            self._handles[name] = self._clock.call_later(interval, _tick)
            self._run(name, callback, args)

        self._handles[name] = self._clock.call_later(interval, _tick)
        return name

    def pending(self, name: str) -> bool:
        return name in self._handles

    def cancel(self, name: str) -> bool:
        handle = self._handles.pop(name, None)
        if handle is None:
            return False
        handle.cancel()
        return True

    def cancel_all(self) -> None:
        """Cancel every timer and every spawned task that has not finished."""
        for name in list(self._handles):
            self.cancel(name)
        for task in list(self._tasks):
            if not task.done():
                task.cancel()
        self._tasks.clear()

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> Any:
        """Start `coro` as a task and hold a reference until it finishes."""
        task = self._clock.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def active_tasks(self) -> int:
        return sum(1 for task in self._tasks if not task.done())

    def __len__(self) -> int:
        return len(self._handles)

    @staticmethod
    def _run(name: str, callback: Callable[..., Any], args: tuple) -> None:
        try:
            callback(*args)
        except Exception:
            logger.exception("timer %s failed", name)
