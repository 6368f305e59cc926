"""Exception hierarchy for the home bridge.

Broker errors carry the topic they concern. Command errors are raised inside
the dispatcher and turned into a ``CommandOutcome`` before reaching callers.
"""
from typing import Optional


class HomeBridgeError(Exception):
    """Base class for every error raised by the bridge."""


class MQTTError(HomeBridgeError):
    """A broker operation on ``topic`` did not succeed.

    Attributes:
        topic: Topic the operation targeted
        reason: Broker reason or local explanation
    """

    action = "operate on"

    def __init__(self, topic: str, reason: str):
        self.topic = topic
        self.reason = reason
        super().__init__(f"Failed to {self.action} {topic}: {reason}")


class NotConnected(MQTTError):
    """Operation attempted without a live broker session."""

    def __init__(self, topic: str, reason: str = "MQTT client not connected"):
        super().__init__(topic, reason)


class SubscribeFailed(MQTTError):
    action = "subscribe to"


class UnsubscribeFailed(MQTTError):
    action = "unsubscribe from"


class PublishFailed(MQTTError):
    action = "publish to"


class CommandError(HomeBridgeError):
    """A spoken command could not be carried out."""


class UnresolvedCommand(CommandError):
    """Room, action or device type could not be found in the text.

    Attributes:
        missing: ``"room"``, ``"action"`` or ``"device_type"``
    """

    def __init__(self, missing: Optional[str], message: str):
        self.missing = missing
        super().__init__(message)


class NoMatchingDevice(CommandError):
    """The command resolved but the room holds no compatible device."""

    def __init__(self, room: str, device_type: str):
        self.room = room
        self.device_type = device_type
        super().__init__(f"No matching {device_type} device in {room}")


class UnsupportedInputFormat(HomeBridgeError):
    def __init__(self, extension: str):
        self.extension = extension
        super().__init__(f"Unsupported file format: {extension}")


class TranscriptionFailed(HomeBridgeError):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Failed to transcribe audio: {reason}")
