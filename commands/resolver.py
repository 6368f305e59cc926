"""
Turn a transcribed sentence into a structured device command.

Everything here is pure: rooms come in as arguments and nothing is published.
Resolution stops at the first dimension (room, action, device type) that
cannot be found and reports which one it was.
"""
import re
import unicodedata
from functools import lru_cache
from typing import Any, Iterable, Optional, Sequence

from commands.keywords import (
    ACTION_KEYWORDS,
    BINARY_DEVICE_TYPES,
    DEVICE_TYPE_ALIASES,
    DEVICE_TYPES,
    PERCENT_TOKENS,
    ROOM_SYNONYMS,
)
from log import setup_logger
from type import ResolvedCommand, Room

logger = setup_logger(__name__)

_NUMBER = re.compile(r"\b\d+(?:[.,]\d+)?\b")


def normalize_text(text: str) -> str:
    return " ".join(unicodedata.normalize("NFC", text).lower().split())


@lru_cache(maxsize=None)
def _word_pattern(keyword: str):
    return re.compile(rf"(?<!\w){re.escape(keyword)}")


def _starts_word(text: str, keyword: str) -> bool:
    return _word_pattern(keyword).search(text) is not None


def find_room(text: str, rooms: Iterable[Room]) -> Optional[Room]:
    for room in rooms:
        room_name = room.name.lower()
        if room_name and room_name in text:
            return room
        for name, synonyms in ROOM_SYNONYMS:
            if room_name == name and any(s in text for s in synonyms):
                return room
    return None


def determine_action(text: str) -> Optional[str]:
    # Keywords must start a word: "on" should not fire inside "salon",
    # while "allumez" still counts as "allume"
    for action, keywords in ACTION_KEYWORDS:
        for keyword in keywords:
            if _starts_word(text, keyword):
                logger.debug(f"Found '{action}' keyword: {keyword}")
                return action
    logger.debug("No action keywords found in text")
    return None


def identify_device_type(text: str) -> Optional[str]:
    for device_type, synonyms in DEVICE_TYPES:
        if any(s in text for s in synonyms):
            return device_type
    return None


def _to_number(token: str):
    value = float(token.replace(",", "."))
    return int(value) if value.is_integer() else value


def extract_value(text: str, device_type: str) -> Any:
    """
    Pull the value of a ``set`` command out of the text.

    Lights read a number as brightness when a percent word is present
    (clamped to 0-100) and as on/off otherwise. Other types keep the number.
    Without a number, binary devices default to "on" and the rest to None.
    """
    match = _NUMBER.search(text)
    if match:
        value = _to_number(match.group(0))
        if device_type == "light":
            if any(token in text for token in PERCENT_TOKENS):
                return min(100, max(0, value))
            return "on" if value > 0 else "off"
        return value

    if device_type in BINARY_DEVICE_TYPES:
        return "on"
    return None


def is_device_compatible(stored_type: str, device_type: str) -> bool:
    """
    Whether a device whose stored type is ``stored_type`` answers to ``device_type``
    """
    stored = stored_type.lower()
    if stored == device_type.lower():
        return True
    for resolved, aliases in DEVICE_TYPE_ALIASES:
        if device_type == resolved and any(alias in stored for alias in aliases):
            return True
    return False


def resolve_command(text: str, rooms: Sequence[Room]) -> ResolvedCommand:
    text = normalize_text(text)

    room = find_room(text, rooms)
    if room is None:
        logger.warning(f"No matching room found in command: \"{text}\"")
        return ResolvedCommand(missing="room", message="No matching room found in command")

    action = determine_action(text)
    if action is None:
        logger.warning(f"No action found in command: \"{text}\"")
        return ResolvedCommand(room=room, missing="action", message=f"No action found for room {room.name}")

    device_type = identify_device_type(text)
    if device_type is None:
        logger.warning(f"No device type found in command: \"{text}\"")
        return ResolvedCommand(
            room=room,
            action=action,
            missing="device_type",
            message=f"No device type found for {action} action in {room.name}",
        )

    value = extract_value(text, device_type) if action == "set" else None
    return ResolvedCommand(
        room=room,
        action=action,
        device_type=device_type,
        value=value,
        matched=True,
        message=success_message(action, device_type, room.name, value),
    )


def success_message(action: str, device_type: str, room_name: str, value: Any = None) -> str:
    if action == "on":
        return f"{device_type} in {room_name} turned on"
    if action == "off":
        return f"{device_type} in {room_name} turned off"
    if action == "set":
        return f"{device_type} in {room_name} set to {value}"
    if action == "get":
        return f"{device_type} in {room_name} status requested"
    return f"Command executed for {device_type} in {room_name}"
