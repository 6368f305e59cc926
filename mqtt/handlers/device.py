"""
Handler turning spoken commands into device messages
"""
from typing import Any, List

from commands.resolver import is_device_compatible, resolve_command
from errors import CommandError, MQTTError, NoMatchingDevice, UnresolvedCommand
from log import setup_logger
from mqtt.utils.helpers import iso_timestamp
from type import CommandOutcome, Device, ResolvedCommand

logger = setup_logger(__name__)


class DeviceCommandHandler:
    def __init__(self, mqtt_session, directory):
        """
        Args:
            mqtt_session: MQTTSession used to publish device commands
            directory: device directory providing rooms and devices per room
        """
        self.mqtt_session = mqtt_session
        self.directory = directory

    async def handle_command(self, text: str) -> CommandOutcome:
        """
        Resolve ``text`` and publish the command to every matching device.

        Never raises: every failure comes back as an outcome with
        ``processed=False`` and a message naming what went wrong.
        """
        logger.info(f"Processing voice command: \"{text}\"")
        command = None
        try:
            rooms = await self.directory.list_rooms()
            command = resolve_command(text, rooms)
            if not command.matched:
                raise UnresolvedCommand(command.missing, command.message)

            devices = await self.select_devices(command)
            for device in devices:
                await self.send_command(device, command.action, command.value)

            return self._outcome(command, processed=True, message=command.message)

        except CommandError as e:
            logger.warning(str(e))
            return self._outcome(command, processed=False, message=str(e))
        except Exception as e:
            logger.error(f"Error processing voice command: {e}", exc_info=True)
            return self._outcome(command, processed=False, message=f"Error: {e}")

    async def select_devices(self, command: ResolvedCommand) -> List[Device]:
        devices = await self.directory.list_devices_by_room(command.room.id)
        matching = [d for d in devices if is_device_compatible(d.device_type, command.device_type)]
        if not matching:
            raise NoMatchingDevice(command.room.name, command.device_type)
        return matching

    async def send_command(self, device: Device, action: str, value: Any = None) -> bool:
        """
        Publish one command to a device's own topic.

        A failed publish is logged and reported as False; it never stops the
        caller from reaching the other devices.
        """
        if not device.topic:
            logger.error(f"Device {device.name} has no MQTT topic")
            return False

        payload = {
            "timestamp": iso_timestamp(),
            "deviceId": device.id,
            "deviceName": device.name,
        }
        if action == "on":
            payload.update(state="on", value=1)
        elif action == "off":
            payload.update(state="off", value=0)
        elif action == "set":
            payload.update(state="set", value=value)
        elif action == "get":
            payload["state"] = "get"

        logger.info(
            f"Executing command: {action} for {device.device_type} ({device.name}) "
            f"with value {value} via topic {device.topic}"
        )
        try:
            await self.mqtt_session.publish(device.topic, payload)
            return True
        except MQTTError as e:
            logger.error(f"Command {action} for {device.name} not delivered: {e}")
            return False

    @staticmethod
    def _outcome(command, processed: bool, message: str) -> CommandOutcome:
        if command is None:
            return CommandOutcome(processed=processed, message=message)
        return CommandOutcome(
            processed=processed,
            message=message,
            room=command.room.name if command.room else None,
            action=command.action,
            device=command.device_type,
            value=command.value,
        )
