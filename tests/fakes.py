from __future__ import annotations

import asyncio
import heapq
import itertools
from typing import Any, Callable, List, Optional, Sequence, Tuple

from bedrockbot.events import Event
from bedrockbot.schemas import ChatPayload, ConnectRequest
from bedrockbot.session import SendError, SessionConnectError


class FakeHandle:
    def __init__(self, when: float, callback: Callable[..., Any], args: tuple) -> None:
        self.when = when
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeTask:
    def __init__(self, coro: Any) -> None:
        self.coro = coro
        self.cancelled = False
        self._callbacks: List[Callable[[Any], Any]] = []

    def done(self) -> bool:
        return self.cancelled

    def cancel(self) -> bool:
        if self.cancelled:
            return False
        self.cancelled = True
        self.coro.close()
        for callback in self._callbacks:
            callback(self)
        return True

    def add_done_callback(self, callback: Callable[[Any], Any]) -> None:
        self._callbacks.append(callback)


class FakeClock:
    """Simulated clock: callbacks run only when the test advances time."""

    def __init__(self) -> None:
        self.now = 0.0
        self._queue: List[Tuple[float, int, FakeHandle]] = []
        self._seq = itertools.count()
        self.tasks: List[Any] = []

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> FakeHandle:
        handle = FakeHandle(self.now + delay, callback, args)
        heapq.heappush(self._queue, (handle.when, next(self._seq), handle))
        return handle

    def create_task(self, coro: Any) -> FakeTask:
        # tests drive the coroutine themselves via self.tasks
        self.tasks.append(coro)
        return FakeTask(coro)

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while self._queue and self._queue[0][0] <= target + 1e-9:
            when, _, handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self.now = when
            handle.callback(*handle.args)
        self.now = target

    def close(self) -> None:
        for coro in self.tasks:
            coro.close()
        self.tasks.clear()


class FixedRandom:
    def __init__(self, value: int) -> None:
        self.value = value

    def randint(self, a: int, b: int) -> int:
        return self.value


class FakeSession:
    def __init__(
        self,
        clock: Optional[FakeClock] = None,
        script: Sequence[Event] = (),
        hold: bool = False,
        error: Optional[Exception] = None,
    ) -> None:
        self.clock = clock
        self.script = list(script)
        self.hold = hold
        self.error = error
        self.sent: List[Tuple[float, str]] = []
        self.payloads: List[ChatPayload] = []
        self.disconnected = False
        self.fail_sends = False
        self._closed: Optional[asyncio.Event] = None

    @property
    def messages(self) -> List[str]:
        return [text for _, text in self.sent]

    def send(self, payload: ChatPayload) -> None:
        if self.fail_sends:
            raise SendError("rejected by server")
        self.payloads.append(payload)
        self.sent.append((self.clock.now if self.clock else 0.0, payload["message"]))

    def disconnect(self) -> None:
        self.disconnected = True
        if self._closed is not None:
            self._closed.set()

    async def events(self):
        for event in self.script:
            yield event
            await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        if self.hold:
            self._closed = asyncio.Event()
            if self.disconnected:
                return
            await self._closed.wait()


class FakeSessionClient:
    def __init__(self, clock: Optional[FakeClock] = None, fail: bool = False, **session_kwargs: Any) -> None:
        self.clock = clock
        self.fail = fail
        self.session_kwargs = session_kwargs
        self.requests: List[ConnectRequest] = []
        self.sessions: List[FakeSession] = []

    async def connect(self, request: ConnectRequest) -> FakeSession:
        self.requests.append(request)
        if self.fail:
            raise SessionConnectError("bridge unreachable")
        session = FakeSession(self.clock, **self.session_kwargs)
        self.sessions.append(session)
        return session
