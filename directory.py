"""
Device directory: where rooms and devices are looked up.

The bridge only reads through ``DeviceDirectory``. ``InMemoryDirectory`` is
the implementation used by the entry point and the tests; it also offers the
writes the server's room/device lifecycle operations need.
"""
import uuid
from typing import Dict, List, Optional, Protocol

from mqtt.topics import build_device_topic, normalize_topic
from type import Device, Room


class DeviceDirectory(Protocol):
    async def list_devices_by_type(self, device_type: str) -> List[Device]: ...

    async def list_devices_by_room(self, room_id: str) -> List[Device]: ...

    async def list_rooms(self) -> List[Room]: ...


class InMemoryDirectory:
    def __init__(self, rooms: Optional[List[Room]] = None, devices: Optional[List[Device]] = None):
        self._rooms: Dict[str, Room] = {room.id: room for room in rooms or []}
        self._devices: Dict[str, Device] = {device.id: device for device in devices or []}

    # reads

    async def list_rooms(self) -> List[Room]:
        return list(self._rooms.values())

    async def list_devices_by_room(self, room_id: str) -> List[Device]:
        return [d for d in self._devices.values() if d.room_id == room_id]

    async def list_devices_by_type(self, device_type: str) -> List[Device]:
        return [d for d in self._devices.values() if d.device_type == device_type]

    async def get_room(self, room_id: str) -> Optional[Room]:
        return self._rooms.get(room_id)

    async def get_device(self, device_id: str) -> Optional[Device]:
        return self._devices.get(device_id)

    # writes

    async def create_room(self, name: str, topic: Optional[str] = None) -> Room:
        room = Room(id=uuid.uuid4().hex, name=name, topic=topic or normalize_topic(name))
        self._rooms[room.id] = room
        return room

    async def update_room(self, room_id: str, **updates) -> Room:
        room = self._require_room(room_id)
        room = room.model_copy(update=updates)
        self._rooms[room_id] = room
        return room

    async def delete_room(self, room_id: str) -> Room:
        self._require_room(room_id)
        return self._rooms.pop(room_id)

    async def create_device(self, room_id: str, name: str, device_type: str) -> Device:
        room = self._require_room(room_id)
        device = Device(
            id=uuid.uuid4().hex,
            name=name,
            room_id=room_id,
            device_type=device_type,
            topic=build_device_topic(room.topic, name, device_type),
        )
        self._devices[device.id] = device
        return device

    async def update_device(self, device_id: str, **updates) -> Device:
        """
        Apply field updates; the topic is derived again whenever the name,
        room or type changes.
        """
        device = self._require_device(device_id).model_copy(update=updates)
        if {"name", "room_id", "device_type"} & updates.keys():
            room = self._require_room(device.room_id)
            device = device.model_copy(update={"topic": build_device_topic(room.topic, device.name, device.device_type)})
        self._devices[device_id] = device
        return device

    async def delete_device(self, device_id: str) -> Device:
        self._require_device(device_id)
        return self._devices.pop(device_id)

    def _require_room(self, room_id: str) -> Room:
        if room_id not in self._rooms:
            raise KeyError(f"Room with ID {room_id} not found")
        return self._rooms[room_id]

    def _require_device(self, device_id: str) -> Device:
        if device_id not in self._devices:
            raise KeyError(f"Device with ID {device_id} not found")
        return self._devices[device_id]
