from __future__ import annotations

"""Session client: the bot's link to the game server.

Purpose: Define the small capability interface the controller relies on
(connect, ordered event stream, fire-and-forget send, disconnect) and provide
a WebSocket implementation that talks to a protocol bridge owning the real
Bedrock session.

Engineering notes: Keep JSON lean (minified); preserve outbound ordering with a
single writer task; never block the event loop.

"""

import asyncio
import json
import logging
from typing import Any, AsyncIterator, Dict, Optional, Protocol

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from .events import Event, parse_event
from .schemas import ChatPayload, ConnectRequest


logger = logging.getLogger("bedrockbot.session")


class SessionError(Exception):
    """Base class for session failures."""


class SessionConnectError(SessionError):
    """The connection request was rejected or could not be made."""


class ProtocolError(SessionError):
    """The live session failed asynchronously."""


class SendError(SessionError):
    """An outbound message was rejected."""


class Session(Protocol):
    def events(self) -> AsyncIterator[Event]: ...

    def send(self, payload: ChatPayload) -> None: ...

    def disconnect(self) -> None: ...


class SessionClient(Protocol):
    async def connect(self, request: ConnectRequest) -> Session: ...


class BridgeSession:
    def __init__(self, websocket: Any) -> None:
        self._ws = websocket
        self._outbox: asyncio.Queue[Optional[Dict[str, Any]]] = asyncio.Queue()
        self._writer: Optional[asyncio.Task] = None
        self.closed = False

    def start(self) -> None:
        if self._writer is None:
            self._writer = asyncio.get_running_loop().create_task(self._write_loop())

    def send(self, payload: ChatPayload) -> None:
        if self.closed:
            raise SendError("session is closed")
        # The frame's own "type" names the packet; the chat kind moves aside
        frame: Dict[str, Any] = {**payload, "type": "text", "text_type": payload["type"]}
        self._outbox.put_nowait(frame)

    def disconnect(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._outbox.put_nowait({"type": "disconnect"})
        self._outbox.put_nowait(None)

    async def events(self) -> AsyncIterator[Event]:
        try:
            async for raw in self._ws:
                try:
                    msg = json.loads(raw)
                except (TypeError, ValueError):
                    logger.warning("invalid JSON from bridge")
                    continue
                if not isinstance(msg, dict):
                    logger.warning("ignoring non-object frame from bridge")
                    continue
                event = parse_event(msg)
                if event is not None:
                    yield event
        except ConnectionClosed as exc:
            if not self.closed:
                raise ProtocolError(f"bridge connection lost: {exc}") from exc

    async def _write_loop(self) -> None:
        try:
            while True:
                frame = await self._outbox.get()
                if frame is None:
                    break
                await self._ws.send(json.dumps(frame, separators=(",", ":")))
        except ConnectionClosed:
            logger.info("bridge closed while sending")
        finally:
            self.closed = True
            await self._ws.close()


class BridgeSessionClient:
    def __init__(self, url: str) -> None:
        self.url = url

    async def connect(self, request: ConnectRequest) -> BridgeSession:
        # No open timeout: a bridge that never answers stalls the caller
        try:
            ws = await websockets.connect(self.url, open_timeout=None)
            await ws.send(json.dumps({"type": "connect", **request}, separators=(",", ":")))
        except (OSError, ValueError, WebSocketException) as exc:
            raise SessionConnectError(f"could not reach bridge at {self.url}: {exc}") from exc
        logger.info("bridge connected: %s -> %s:%s", self.url, request["host"], request["port"])
        session = BridgeSession(ws)
        session.start()
        return session
