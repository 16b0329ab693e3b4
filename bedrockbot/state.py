from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .events import Position


DEFAULT_HEALTH = 20


@dataclass
class BotState:
    username: str = ""
    position: Position = field(default_factory=Position)
    health: int = DEFAULT_HEALTH
    entity_id: Optional[str] = None
    connected: bool = False
    reply_toggle: bool = False

    def reset(self) -> None:
        """Restore every field except the username to its default."""
        self.position = Position()
        self.health = DEFAULT_HEALTH
        self.entity_id = None
        self.connected = False
        self.reply_toggle = False

    def status(self) -> Dict[str, Any]:
        return {
            "connected": self.connected,
            "username": self.username,
            "position": {"x": self.position.x, "y": self.position.y, "z": self.position.z},
            "health": self.health,
            "entity_id": self.entity_id,
        }
