from __future__ import annotations

"""Map incoming chat text to bot replies.

Purpose: Check a chat line for a small set of '!'-prefixed keywords and
greetings and return the replies to send back.

Supported patterns (case-insensitive, anywhere in the line, not exclusive):
- !ping, !help, !pos, !time, !health
- "hello bot" / "hi bot"

"""

from datetime import datetime
from typing import List, Optional

from .state import BotState


MAX_HEALTH = 20

PONG_REPLY = "🏓 Pong!"
HELP_REPLY = "🤖 Commands: !ping, !pos, !time, !health, !help"
GREETING_REPLY = "👋 Hello there!"
GREETINGS = ("hello bot", "hi bot")


def dispatch_command(text: object, state: BotState, now: Optional[datetime] = None) -> List[str]:
    """Return replies for one chat line, in a fixed order. Non-string text yields none."""
    if not isinstance(text, str):
        return []
    message = text.lower()
    replies: List[str] = []

    if "!ping" in message:
        replies.append(PONG_REPLY)

    if "!help" in message:
        replies.append(HELP_REPLY)

    if "!pos" in message:
        replies.append(f"📍 Position: {state.position.format()}")

    if "!time" in message:
        stamp = (now or datetime.now()).strftime("%X")
        replies.append(f"🕒 Time: {stamp}")

    if "!health" in message:
        replies.append(f"❤️ Health: {state.health}/{MAX_HEALTH}")

    if any(greeting in message for greeting in GREETINGS):
        replies.append(GREETING_REPLY)

    return replies
