from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Action = Literal["on", "off", "set", "get"]
Dimension = Literal["room", "action", "device_type"]


class Room(BaseModel):
    id: str
    name: str
    topic: str = ""


class Device(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    room_id: str = Field(alias="roomId")
    device_type: str = Field(alias="type")
    topic: str = ""


class InboundMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    topic: str
    payload: Any = None


class ResolvedCommand(BaseModel):
    model_config = ConfigDict(frozen=True)

    room: Optional[Room] = None
    action: Optional[Action] = None
    device_type: Optional[str] = None
    value: Any = None
    matched: bool = False
    missing: Optional[Dimension] = None
    message: str = ""


class CommandOutcome(BaseModel):
    processed: bool
    message: str
    room: Optional[str] = None
    action: Optional[Action] = None
    device: Optional[str] = None
    value: Any = None
