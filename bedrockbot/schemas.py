from __future__ import annotations

"""Typed schema definitions for bot <-> bridge messages.

Purpose: Provide precise TypedDicts for the JSON frames exchanged with the
protocol bridge. Inbound frames carry Bedrock packet names and fields as the
bridge forwards them.

"""

from typing import Any, Literal, TypedDict, Union


OutboundType = Literal["connect", "text", "disconnect"]

InboundType = Literal[
    "start_game",
    "spawn",
    "move_actor_absolute",
    "set_health",
    "text",
    "disconnect",
    "error",
]


class Vec3(TypedDict):
    x: float
    y: float
    z: float


class ConnectRequest(TypedDict):
    host: str
    port: int
    username: str
    offline: bool


class ChatPayload(TypedDict):
    type: str
    needs_translation: bool
    source_name: str
    xuid: str
    platform_chat_id: str
    filtered_message: str
    message: str


class StartGame(TypedDict):
    type: Literal["start_game"]
    runtime_entity_id: Union[int, str]


class Spawn(TypedDict):
    type: Literal["spawn"]


class MoveActorAbsolute(TypedDict):
    type: Literal["move_actor_absolute"]
    runtime_entity_id: Union[int, str]
    position: Vec3


class SetHealth(TypedDict):
    type: Literal["set_health"]
    health: int


class TextPacket(TypedDict, total=False):
    type: Literal["text"]
    # Bedrock names the chat kind "type" as well; the bridge renames it.
    text_type: str
    source_name: str
    message: str


class DisconnectPacket(TypedDict, total=False):
    type: Literal["disconnect"]
    message: str


class ErrorFrame(TypedDict, total=False):
    type: Literal["error"]
    message: str
    detail: Any


def chat_payload(source_name: str, message: str) -> ChatPayload:
    """Build a broadcast chat payload; recipient metadata stays blank."""
    return {
        "type": "chat",
        "needs_translation": False,
        "source_name": source_name,
        "xuid": "",
        "platform_chat_id": "",
        "filtered_message": "",
        "message": message,
    }
