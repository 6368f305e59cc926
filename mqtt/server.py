"""
Main server class wiring the broker session, simulations and voice commands
"""
import asyncio
import contextlib
import signal
from typing import Any, AsyncIterator, Dict, List, Optional

import config
from container import container
from directory import InMemoryDirectory
from errors import MQTTError
from log import setup_logger
from module.stt import STT
from mqtt.client import MQTTSession
from mqtt.handlers.audio import AudioCommandHandler
from mqtt.handlers.device import DeviceCommandHandler
from mqtt.stream import stream_messages
from simulation.scheduler import SimulationScheduler
from type import CommandOutcome, Device, Room

logger = setup_logger(__name__)


class HomeBridgeServer:
    def __init__(self, session: Optional[MQTTSession] = None, directory=None,
                 transcriber: Optional[STT] = None, scheduler: Optional[SimulationScheduler] = None):
        """
        Build the bridge services and register them in the service container

        Args:
            session: broker session; a TLS session from ``config`` when omitted
            directory: device directory; an empty InMemoryDirectory when omitted
            transcriber: speech-to-text provider; a GroqWhisper client when omitted
            scheduler: simulation scheduler; built on ``session`` when omitted
        """
        self.session = session or MQTTSession()
        self.directory = directory if directory is not None else InMemoryDirectory()
        if transcriber is None:
            from module.stt.groq_whisper import GroqWhisper
            transcriber = GroqWhisper()
        self.transcriber = transcriber
        self.scheduler = scheduler or SimulationScheduler(self.session, self.directory)

        self.device_handler = DeviceCommandHandler(self.session, self.directory)
        self.audio_handler = AudioCommandHandler(self.transcriber, self.device_handler)

        self._background: List[asyncio.Task] = []
        self._stop_event = asyncio.Event()

        container.register("mqtt_session", self.session)
        container.register("directory", self.directory)
        container.register("scheduler", self.scheduler)
        container.register("device_handler", self.device_handler)
        container.register("audio_handler", self.audio_handler)

    async def start(self):
        logger.info("=" * 60)
        logger.info("    Home Bridge - MQTT Server    ")
        logger.info("=" * 60)

        await self.session.connect()

        if config.GLOBAL_LISTENER_ENABLED:
            # The wildcard subscription may wait for the connection; do not block on it
            self._background.append(asyncio.create_task(self.session.start_global_listener()))

        self.scheduler.start_auto_discovery()
        logger.info(f"[SERVER] Server started with ID: {self.session.client_id}")

    async def stop(self):
        logger.info("[SERVER] Shutting down server...")
        await self.scheduler.stop_auto_discovery()
        self.scheduler.stop_all()

        for task in self._background:
            task.cancel()
        for task in self._background:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._background.clear()

        await self.session.disconnect()
        await self.transcriber.close()
        container.clear()
        logger.info("[SERVER] MQTT server stopped")

    async def run_forever(self):
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError):
                loop.add_signal_handler(sig, self._stop_event.set)

        await self.start()
        logger.info("[SERVER] Press Ctrl+C to exit")
        try:
            await self._stop_event.wait()
        finally:
            await self.stop()
            for sig in (signal.SIGINT, signal.SIGTERM):
                with contextlib.suppress(NotImplementedError):
                    loop.remove_signal_handler(sig)

    def request_stop(self):
        self._stop_event.set()

    # ------------------------------------------------------------------ #
    # topics
    # ------------------------------------------------------------------ #

    async def subscribe_topic(self, topic: str) -> Dict[str, Any]:
        await self.session.subscribe(topic)
        return {"success": True, "topic": topic}

    async def unsubscribe_topic(self, topic: str) -> Dict[str, Any]:
        await self.session.unsubscribe(topic)
        return {"success": True, "topic": topic}

    async def publish_to_topic(self, topic: str, message: Any) -> Dict[str, Any]:
        await self.session.publish(topic, message)
        return {"success": True}

    def stream(self) -> AsyncIterator[Dict[str, str]]:
        return stream_messages(self.session)

    # ------------------------------------------------------------------ #
    # simulations
    # ------------------------------------------------------------------ #

    def start_simulation(self, device_id: str, topic: str, interval_ms: Optional[int] = None,
                         generator=None, device_type: Optional[str] = None) -> Dict[str, Any]:
        if not device_id:
            raise ValueError("deviceId is required")
        if interval_ms is not None and interval_ms < config.SIMULATION_MIN_INTERVAL_MS:
            raise ValueError(f"interval must be at least {config.SIMULATION_MIN_INTERVAL_MS} ms")
        started = self.scheduler.start(device_id, topic, interval_ms, generator=generator, device_type=device_type)
        return {"success": started, "deviceId": device_id, "topic": topic}

    def stop_simulation(self, device_id: str) -> Dict[str, Any]:
        return {"success": self.scheduler.stop(device_id), "deviceId": device_id}

    def stop_all_simulations(self) -> Dict[str, Any]:
        self.scheduler.stop_all()
        return {"success": True}

    def list_simulations(self) -> Dict[str, Any]:
        return {"simulations": self.scheduler.list_running()}

    # ------------------------------------------------------------------ #
    # voice commands
    # ------------------------------------------------------------------ #

    async def handle_command(self, text: str) -> CommandOutcome:
        return await self.device_handler.handle_command(text)

    async def handle_audio(self, audio: bytes, extension: str) -> CommandOutcome:
        return await self.audio_handler.handle_audio(audio, extension)

    # ------------------------------------------------------------------ #
    # rooms and devices
    # ------------------------------------------------------------------ #

    async def add_room(self, name: str, topic: Optional[str] = None) -> Room:
        room = await self.directory.create_room(name, topic)
        await self.session.subscribe(room.topic)
        logger.info(f"Created room: {room.name} with topic: {room.topic}")
        return room

    async def update_room(self, room_id: str, **updates) -> Room:
        current = await self.directory.get_room(room_id)
        if current is None:
            raise KeyError(f"Room with ID {room_id} not found")
        new_topic = updates.get("topic")
        if new_topic and new_topic != current.topic:
            await self.session.unsubscribe(current.topic)
            await self.session.subscribe(new_topic)
        return await self.directory.update_room(room_id, **updates)

    async def remove_room(self, room_id: str) -> bool:
        room = await self.directory.get_room(room_id)
        if room is None:
            raise KeyError(f"Room with ID {room_id} not found")
        await self.session.unsubscribe(room.topic)
        await self.directory.delete_room(room_id)
        return True

    async def add_device(self, room_id: str, name: str, device_type: str) -> Device:
        device = await self.directory.create_device(room_id, name, device_type)
        await self.session.subscribe(device.topic)
        logger.info(f"Created device: {device.name} with topic: {device.topic}")
        return device

    async def update_device(self, device_id: str, **updates) -> Device:
        """
        Update a device. When its topic changes the subscription moves with it
        and a running simulation is restarted on the new topic.
        """
        current = await self.directory.get_device(device_id)
        if current is None:
            raise KeyError(f"Device with ID {device_id} not found")
        device = await self.directory.update_device(device_id, **updates)
        if device.topic != current.topic:
            if current.topic:
                await self.session.unsubscribe(current.topic)
            await self.session.subscribe(device.topic)
            simulation = self.scheduler.get(device_id)
            if simulation is not None:
                # Keep a custom generator or a type override given at start
                device_type = simulation.device_type
                if device_type is None or device_type == current.device_type:
                    device_type = device.device_type
                self.scheduler.start(
                    device_id, device.topic, simulation.interval_ms,
                    generator=simulation.generator if simulation.custom_generator else None,
                    device_type=device_type, device_name=device.name,
                )
        return device

    async def remove_device(self, device_id: str) -> bool:
        device = await self.directory.get_device(device_id)
        if device is None:
            raise KeyError(f"Device with ID {device_id} not found")
        self.scheduler.stop(device_id)
        if device.topic:
            try:
                await self.session.unsubscribe(device.topic)
            except MQTTError as e:
                logger.error(f"Failed to unsubscribe removed device {device.name}: {e}")
        await self.directory.delete_device(device_id)
        return True
