# This software is licensed under a **dual-license model**
# For individuals and businesses earning **under $1M per year**, this software is licensed under the **MIT License**
# Businesses or organizations with **annual revenue of $1,000,000 or more** must obtain permission to use this software commercially.

import json
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Union

from ..core.errors import MessageDecodeError

# Command keys shared with the companion app
PLAY_PAUSE = "playPause"
CHANGE_VOLUME = "changeVolume"
SWITCH_SCENE = "switchScene"
TOGGLE_NIGHT_MODE = "toggleNightMode"
MESSAGE_ID = "messageId"


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class PlayPause:
    message_id: str = field(default_factory=_new_id)


@dataclass(frozen=True)
class VolumeChange:
    level: float
    message_id: str = field(default_factory=_new_id)


@dataclass(frozen=True)
class SceneChange:
    name: str
    message_id: str = field(default_factory=_new_id)


@dataclass(frozen=True)
class NightModeToggle:
    message_id: str = field(default_factory=_new_id)


RemoteMessage = Union[PlayPause, VolumeChange, SceneChange, NightModeToggle]


def encode_message(message: RemoteMessage) -> bytes:
    """Serializes a message to the JSON payload the companion app understands."""
    if isinstance(message, PlayPause):
        body: Dict[str, Any] = {PLAY_PAUSE: True}
    elif isinstance(message, VolumeChange):
        body = {CHANGE_VOLUME: float(message.level)}
    elif isinstance(message, SceneChange):
        body = {SWITCH_SCENE: message.name}
    elif isinstance(message, NightModeToggle):
        body = {TOGGLE_NIGHT_MODE: True}
    else:
        raise TypeError(f"Not a remote message: {message!r}")
    body[MESSAGE_ID] = message.message_id
    return json.dumps(body).encode("utf-8")


def decode_message(payload: Union[bytes, str, Dict[str, Any]]) -> RemoteMessage:
    """
    Normalizes a raw inbound payload into a RemoteMessage.

    Raises:
        MessageDecodeError: for anything that is not exactly one known command.
    """
    if isinstance(payload, (bytes, bytearray)):
        try:
            payload = payload.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MessageDecodeError(f"Payload is not UTF-8: {e}") from e
    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as e:
            raise MessageDecodeError(f"Payload is not JSON: {e}") from e
    if not isinstance(payload, dict):
        raise MessageDecodeError(f"Payload must be an object, got {type(payload).__name__}")

    commands = [key for key in (PLAY_PAUSE, CHANGE_VOLUME, SWITCH_SCENE, TOGGLE_NIGHT_MODE) if key in payload]
    if len(commands) != 1:
        raise MessageDecodeError(f"Expected exactly one command, got {sorted(payload.keys())}")

    # Without an id the message cannot be de-duplicated downstream
    message_id = payload.get(MESSAGE_ID)
    if not isinstance(message_id, str) or not message_id:
        message_id = _new_id()

    command = commands[0]
    value = payload[command]
    if command == PLAY_PAUSE:
        return PlayPause(message_id=message_id)
    if command == TOGGLE_NIGHT_MODE:
        return NightModeToggle(message_id=message_id)
    if command == CHANGE_VOLUME:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise MessageDecodeError(f"Volume must be a number, got {value!r}")
        return VolumeChange(level=float(value), message_id=message_id)
    if not isinstance(value, str) or not value:
        raise MessageDecodeError(f"Scene name must be a non-empty string, got {value!r}")
    return SceneChange(name=value, message_id=message_id)
