"""
Periodic publishers for simulated devices
"""
import asyncio
import contextlib
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import config
from log import setup_logger
from simulation.generators import Generator, make_generator

logger = setup_logger(__name__)


@dataclass
class SimulationTask:
    device_id: str
    topic: str
    interval_ms: int
    generator: Generator
    device_type: Optional[str] = None
    custom_generator: bool = False
    task: Optional[asyncio.Task] = field(default=None, repr=False)

    def cancel(self):
        if self.task is not None and not self.task.done():
            self.task.cancel()


class SimulationScheduler:
    def __init__(self, session, directory=None, sensor_types: Optional[List[str]] = None,
                 sensor_interval_ms: Optional[int] = None, check_interval: Optional[float] = None,
                 check_delay: Optional[float] = None):
        """
        Keep at most one periodic publisher per device id

        Args:
            session: MQTTSession used to publish each tick
            directory: device directory queried by auto-discovery
            sensor_types: device types auto-discovery starts simulations for
            sensor_interval_ms: tick interval for auto-discovered sensors
            check_interval: seconds between auto-discovery passes
            check_delay: seconds before the first pass
        """
        self.session = session
        self.directory = directory
        self.sensor_types = sensor_types or list(config.SIMULATED_SENSOR_TYPES)
        self.sensor_interval_ms = sensor_interval_ms or config.SENSOR_SIMULATION_INTERVAL_MS
        self.check_interval = config.SENSOR_CHECK_INTERVAL if check_interval is None else check_interval
        if self.check_interval <= 0:
            raise ValueError(f"Sensor check interval must be positive, got {self.check_interval}")
        self.check_delay = config.SENSOR_CHECK_DELAY if check_delay is None else check_delay

        self._simulations: Dict[str, SimulationTask] = {}
        self._discovery_task: Optional[asyncio.Task] = None

    def start(self, device_id: str, topic: str, interval_ms: Optional[int] = None,
              generator: Optional[Generator] = None, device_type: Optional[str] = None,
              device_name: Optional[str] = None) -> bool:
        """
        Start publishing ``generator()`` to ``topic`` every ``interval_ms``.
        A simulation already running for ``device_id`` is cancelled first.

        Returns:
            False (and nothing changes) when ``topic`` is empty, True otherwise
        """
        if not topic:
            logger.error(f"Cannot start simulation: Missing topic for device {device_id}")
            return False
        interval_ms = interval_ms or config.SIMULATION_INTERVAL_MS
        if interval_ms <= 0:
            raise ValueError(f"Simulation interval must be positive, got {interval_ms}")

        self.stop(device_id)

        simulation = SimulationTask(
            device_id=device_id,
            topic=topic,
            interval_ms=interval_ms,
            generator=generator or make_generator(device_id, device_type, device_name),
            device_type=device_type,
            custom_generator=generator is not None,
        )
        simulation.task = asyncio.create_task(self._run(simulation), name=f"simulation-{device_id}")
        self._simulations[device_id] = simulation
        logger.info(f"Started simulation for device {device_id} on topic {topic}")
        return True

    def stop(self, device_id: str) -> bool:
        """
        Cancel the simulation of ``device_id``. Returns False if none was running.
        """
        simulation = self._simulations.pop(device_id, None)
        if simulation is None:
            return False
        simulation.cancel()
        logger.debug(f"Stopped simulation for device {device_id}")
        return True

    def stop_all(self):
        for simulation in self._simulations.values():
            simulation.cancel()
        self._simulations.clear()
        logger.info("Stopped all simulations")

    def list_running(self) -> List[str]:
        """Snapshot of the device ids with an active simulation"""
        return list(self._simulations)

    def get(self, device_id: str) -> Optional[SimulationTask]:
        return self._simulations.get(device_id)

    def is_running(self, device_id: str) -> bool:
        return device_id in self._simulations

    async def _run(self, simulation: SimulationTask):
        interval = simulation.interval_ms / 1000
        while True:
            await asyncio.sleep(interval)
            try:
                data = simulation.generator()
                await self.session.publish(simulation.topic, data)
            except Exception as e:
                logger.error(f"Error in simulation for device {simulation.device_id}: {e}")

    # ------------------------------------------------------------------ #
    # auto-discovery
    # ------------------------------------------------------------------ #

    async def discover_sensors(self) -> int:
        """
        Start a simulation for every sensor of interest not already simulated.
        Running simulations are never restarted, and simulations whose sensor
        left the directory are left alone.

        Returns:
            Number of simulations started by this pass
        """
        if self.directory is None:
            logger.warning("No device directory configured, skipping sensor discovery")
            return 0

        sensors = []
        for sensor_type in self.sensor_types:
            try:
                sensors.extend(await self.directory.list_devices_by_type(sensor_type))
            except Exception as e:
                logger.error(f"Error getting sensors of type {sensor_type}: {e}")

        if not sensors:
            logger.warning(f"No sensors found of types: {', '.join(self.sensor_types)}")
            return 0

        started = 0
        for sensor in sensors:
            if sensor.id in self._simulations:
                continue
            try:
                if self.start(sensor.id, sensor.topic, self.sensor_interval_ms,
                              device_type=sensor.device_type, device_name=sensor.name):
                    started += 1
                    logger.info(f"Started simulation for {sensor.device_type} sensor: {sensor.name}")
            except Exception as e:
                logger.error(f"Failed to start simulation for sensor {sensor.name}: {e}")

        logger.info(f"Started simulations for {started} out of {len(sensors)} sensors")
        return started

    def start_auto_discovery(self):
        if self._discovery_task is None or self._discovery_task.done():
            self._discovery_task = asyncio.create_task(self._discovery_loop(), name="sensor-discovery")
            logger.info("Sensor auto-discovery started")

    async def stop_auto_discovery(self):
        task, self._discovery_task = self._discovery_task, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
            logger.info("Sensor auto-discovery stopped")

    async def _discovery_loop(self):
        await asyncio.sleep(self.check_delay)
        while True:
            try:
                await self.discover_sensors()
            except Exception as e:
                logger.error(f"Failed to start sensor simulations: {e}")
            await self._wait_for_next_check()
            logger.info("Performing periodic check for new sensors...")

    async def _wait_for_next_check(self):
        remaining = self.check_interval
        while remaining > 0:
            step = min(60.0, remaining)
            await asyncio.sleep(step)
            remaining -= step
            if remaining > 0:
                minutes, seconds = divmod(int(remaining), 60)
                logger.info(f"Time remaining before next sensor check: {minutes} minutes and {seconds} seconds")
