from __future__ import annotations

"""Session events consumed by the bot controller.

Purpose: Turn inbound bridge frames into small immutable event objects so the
controller never touches raw packet dicts.

Engineering notes: Parsing is lenient; a frame with missing or mistyped fields
becomes None (or an event with None fields) rather than an exception.

"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union


logger = logging.getLogger("bedrockbot.events")


@dataclass(frozen=True)
class Position:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def format(self) -> str:
        return f"{self.x:.1f}, {self.y:.1f}, {self.z:.1f}"


@dataclass(frozen=True)
class WorldStarted:
    entity_id: str


@dataclass(frozen=True)
class Spawned:
    pass


@dataclass(frozen=True)
class PositionChanged:
    entity_id: str
    position: Position


@dataclass(frozen=True)
class HealthChanged:
    value: int


@dataclass(frozen=True)
class ChatReceived:
    source_name: Optional[str]
    kind: Optional[str]
    text: Optional[str]


@dataclass(frozen=True)
class Disconnected:
    reason: str = "Unknown reason"


@dataclass(frozen=True)
class SessionFailed:
    message: str


Event = Union[
    WorldStarted,
    Spawned,
    PositionChanged,
    HealthChanged,
    ChatReceived,
    Disconnected,
    SessionFailed,
]


def _entity_id(value: Any) -> Optional[str]:
    # Runtime ids are 64-bit; the bridge may send them as numbers or strings
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, str)) and str(value):
        return str(value)
    return None


def _number(value: Any) -> Optional[float]:
    # JSON allows Infinity and NaN; neither is a usable coordinate or health
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None
    return number if math.isfinite(number) else None


def _text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def parse_event(msg: Dict[str, Any]) -> Optional[Event]:
    """Map one bridge frame to an event, or None when it is unknown or malformed."""
    mtype = msg.get("type")

    if mtype == "start_game":
        eid = _entity_id(msg.get("runtime_entity_id"))
        return WorldStarted(eid) if eid is not None else None

    if mtype == "spawn":
        return Spawned()

    if mtype == "move_actor_absolute":
        eid = _entity_id(msg.get("runtime_entity_id"))
        pos = msg.get("position")
        if eid is None or not isinstance(pos, dict):
            return None
        coords = [_number(pos.get(axis)) for axis in ("x", "y", "z")]
        if any(c is None for c in coords):
            return None
        return PositionChanged(eid, Position(*coords))  # type: ignore[arg-type]

    if mtype == "set_health":
        health = _number(msg.get("health"))
        if health is None:
            return None
        return HealthChanged(int(health))

    if mtype == "text":
        return ChatReceived(
            source_name=_text(msg.get("source_name")),
            kind=_text(msg.get("text_type")),
            text=_text(msg.get("message")),
        )

    if mtype == "disconnect":
        return Disconnected(_text(msg.get("message")) or "Unknown reason")

    if mtype == "error":
        return SessionFailed(_text(msg.get("message")) or "unknown error")

    logger.debug("unhandled frame type: %s", mtype)
    return None
