from __future__ import annotations

"""Bot controller.

Purpose: Own the bot's state, react to session events, answer chat commands,
run the idle-announcement and status timers, and reconnect after unexpected
drops.

How: One event pump per session feeds `handle_event`; every delayed action
goes through a TimerRegistry so shutdown can cancel it. A shutting-down flag
keeps a deliberate disconnect from arming the reconnect timer.

Engineering notes: Handlers never raise into the pump; every failure is one
log line. Delays below encode the ordering the server expects between
commands and are not tuning knobs.

"""

import enum
import logging
import random
from typing import Any, Dict, Optional

from .commands import MAX_HEALTH, dispatch_command
from .config import Settings
from .events import (
    ChatReceived,
    Disconnected,
    Event,
    HealthChanged,
    PositionChanged,
    SessionFailed,
    Spawned,
    WorldStarted,
)
from .schemas import ConnectRequest, chat_payload
from .session import Session, SessionClient
from .state import BotState
from .timers import Clock, TimerRegistry


logger = logging.getLogger("bedrockbot.controller")


KICKOFF_DELAY_S = 2.0
IDLE_CHAT_DELAY_S = 0.5
IDLE_MSG_DELAY_S = 1.0
IDLE_CYCLE_INTERVAL_S = 20 * 60.0
STATUS_INTERVAL_S = 60.0
RECONNECT_DELAY_S = 10.0
FAREWELL_FLUSH_S = 1.0

IDLE_MIN_MINUTES = 1
IDLE_MAX_MINUTES = 60
IDLE_NOTIFY_RECIPIENT = "elytrashulker"
IDLE_TOKENS = ("Worked", "perfect")
FAREWELL_MESSAGE = "🤖 Bot going offline. Goodbye!"

RECONNECT_TIMER = "reconnect"
STATUS_TIMER = "status"
IDLE_CYCLE_TIMER = "idle-cycle"
CLOSE_TIMER = "close"


class BotPhase(enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class BotController:
    def __init__(
        self,
        client: SessionClient,
        clock: Clock,
        *,
        settings: Optional[Settings] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.client = client
        self.settings = settings or Settings()
        self.state = BotState(username=self.settings.username)
        self.phase = BotPhase.DISCONNECTED
        self.timers = TimerRegistry(clock)
        self._rng = rng or random.Random()
        self._session: Optional[Session] = None
        self._shutting_down = False

    @property
    def shutting_down(self) -> bool:
        return self._shutting_down

    def start(self) -> None:
        """Arm the periodic status report and the scheduled idle cycle."""
        self.timers.every(STATUS_INTERVAL_S, self.report_status, name=STATUS_TIMER)
        self.timers.every(IDLE_CYCLE_INTERVAL_S, self._scheduled_announcement, name=IDLE_CYCLE_TIMER)

    async def connect(self, username: Optional[str] = None) -> bool:
        if self._shutting_down:
            logger.warning("connect ignored: shutting down")
            return False
        if self.phase is not BotPhase.DISCONNECTED:
            logger.warning("connect ignored: already %s", self.phase.value)
            return False

        self.state.reset()
        if username:
            self.state.username = username
        self.phase = BotPhase.CONNECTING
        request: ConnectRequest = {
            "host": self.settings.host,
            "port": self.settings.port,
            "username": self.state.username,
            "offline": self.settings.offline,
        }
        logger.info("connecting to %s:%s as %s", request["host"], request["port"], request["username"])
        try:
            session = await self.client.connect(request)
        except Exception as exc:
            logger.error("connection failed: %s", exc)
            self.phase = BotPhase.DISCONNECTED
            return False

        if self._shutting_down:
            # shutdown() ran while the request was in flight
            session.disconnect()
            self.phase = BotPhase.DISCONNECTED
            return False
        self._session = session
        self.timers.spawn(self._pump(session))
        return True

    async def _pump(self, session: Session) -> None:
        try:
            async for event in session.events():
                if session is not self._session:
                    return
                self.handle_event(event)
        except Exception as exc:
            if session is self._session:
                self.handle_event(SessionFailed(str(exc)))
            return
        if session is self._session and self.phase is not BotPhase.DISCONNECTED:
            self.handle_event(Disconnected("session closed"))

    def handle_event(self, event: Event) -> None:
        try:
            if isinstance(event, WorldStarted):
                self._on_world_started(event)
            elif isinstance(event, Spawned):
                self._on_spawn()
            elif isinstance(event, PositionChanged):
                self._on_position(event)
            elif isinstance(event, HealthChanged):
                self.state.health = event.value
                logger.info("health: %s/%s", event.value, MAX_HEALTH)
            elif isinstance(event, ChatReceived):
                self._on_chat(event)
            elif isinstance(event, Disconnected):
                logger.info("disconnected: %s", event.reason)
                self._mark_disconnected()
            elif isinstance(event, SessionFailed):
                logger.error("client error: %s", event.message)
                # Counts as a drop: shares the single reconnect timer with Disconnected
                self._mark_disconnected()
            else:
                logger.debug("unhandled event: %r", event)
        except Exception:
            logger.exception("handler failed for %r", event)

    def _on_world_started(self, event: WorldStarted) -> None:
        self.state.entity_id = event.entity_id
        logger.info("game started, entity id %s", event.entity_id)

    def _on_spawn(self) -> None:
        logger.info("spawned as %s", self.state.username)
        self.phase = BotPhase.CONNECTED
        self.state.connected = True
        self.timers.once(KICKOFF_DELAY_S, self._kickoff_announcement)

    def _on_position(self, event: PositionChanged) -> None:
        if self.state.entity_id is None or event.entity_id != self.state.entity_id:
            return
        self.state.position = event.position

    def _on_chat(self, event: ChatReceived) -> None:
        logger.info("chat [%s] %s: %s", event.kind, event.source_name, event.text)
        if event.source_name is None or event.text is None:
            return
        if event.source_name == self.state.username:
            return
        for reply in dispatch_command(event.text, self.state):
            self.send_message(reply)

    def _mark_disconnected(self) -> None:
        self.state.connected = False
        self.phase = BotPhase.DISCONNECTED
        if self._shutting_down:
            return
        if self.timers.pending(RECONNECT_TIMER):
            return
        logger.info("attempting to reconnect in %.0f seconds", RECONNECT_DELAY_S)
        self.timers.once(RECONNECT_DELAY_S, self._reconnect, name=RECONNECT_TIMER)

    def _reconnect(self) -> None:
        if self._shutting_down or self.phase is not BotPhase.DISCONNECTED:
            return
        stale, self._session = self._session, None
        if stale is not None:
            try:
                stale.disconnect()
            except Exception as exc:
                logger.debug("closing stale session failed: %s", exc)
        self.timers.spawn(self.connect(self.state.username))

    def send_message(self, text: str) -> bool:
        """Queue a chat line (or a '/' command). Dropped with a log line while disconnected."""
        session = self._session
        if not self.state.connected or session is None:
            logger.warning("cannot send message - not connected: %s", text)
            return False
        try:
            session.send(chat_payload(self.state.username, text))
        except Exception as exc:
            logger.error("failed to send message: %s", exc)
            return False
        logger.info("sent: %s", text)
        return True

    def send_idle_announcement(self) -> Optional[int]:
        """Issue /afk, then the chat notice, then the private message, spaced apart.

        Returns the chosen duration in minutes, or None while disconnected.
        """
        if not self.state.connected:
            logger.debug("idle announcement skipped: not connected")
            return None

        minutes = self._rng.randint(IDLE_MIN_MINUTES, IDLE_MAX_MINUTES)
        self.send_message(f"/afk {minutes}")
        self.timers.once(IDLE_CHAT_DELAY_S, self.send_message, f"Going AFK for {minutes} minutes! 💤")

        token = IDLE_TOKENS[1] if self.state.reply_toggle else IDLE_TOKENS[0]
        self.state.reply_toggle = not self.state.reply_toggle
        self.timers.once(IDLE_MSG_DELAY_S, self.send_message, f"/msg {IDLE_NOTIFY_RECIPIENT} {token}")

        logger.info("sent /afk %s, chat notice and /msg %s %s", minutes, IDLE_NOTIFY_RECIPIENT, token)
        return minutes

    def _kickoff_announcement(self) -> None:
        if self.send_idle_announcement() is not None:
            logger.info("initial idle announcement sent")

    def _scheduled_announcement(self) -> None:
        if self.state.connected:
            self.send_idle_announcement()

    def status(self) -> Dict[str, Any]:
        return self.state.status()

    def report_status(self) -> None:
        if not self.state.connected:
            logger.info("bot is not connected")
            return
        logger.info(
            "status: %s | health: %s | pos: %s",
            self.state.username,
            self.state.health,
            self.state.position.format(),
        )

    def shutdown(self) -> None:
        """Say goodbye, then close the session after a short flush delay. Never reconnects."""
        if self._shutting_down:
            return
        self._shutting_down = True
        self.timers.cancel_all()

        session = self._session
        if session is None:
            self.phase = BotPhase.DISCONNECTED
            return
        if not self.state.connected:
            self._close_session()
            return
        logger.info("disconnecting from server")
        self.send_message(FAREWELL_MESSAGE)
        self.timers.once(FAREWELL_FLUSH_S, self._close_session, name=CLOSE_TIMER)

    def _close_session(self) -> None:
        session = self._session
        self._session = None
        self.state.connected = False
        self.phase = BotPhase.DISCONNECTED
        if session is None:
            return
        try:
            session.disconnect()
        except Exception as exc:
            logger.error("failed to close session: %s", exc)
