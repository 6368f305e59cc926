"""
Synthetic readings published by simulated devices
"""
import random
from typing import Any, Callable, Dict, Optional

from mqtt.utils.helpers import iso_timestamp

Generator = Callable[[], Dict[str, Any]]

# device type -> (min, max, unit)
SENSOR_RANGES = {
    "temperature": (18.0, 26.0, "°C"),
    "humidity": (40.0, 80.0, "%"),
}
DEFAULT_RANGE = (0.0, 100.0, None)


def _reading(rng, low: float, high: float) -> float:
    return round(rng.uniform(low, high), 1)


def make_generator(device_id: str, device_type: Optional[str] = None,
                   device_name: Optional[str] = None, rng=None) -> Generator:
    """
    Build the default generator for a device.

    Args:
        device_id: Id written into every payload
        device_type: Picks the value range; unknown or missing types use 0-100 without unit
        device_name: Added as ``deviceName`` when given
        rng: ``random.Random`` instance, mostly for tests

    Returns:
        A no-argument function producing ``{deviceId, timestamp, value, unit?}``
    """
    rng = rng or random
    kind = (device_type or "").lower()

    if kind == "environment":
        return _environment_generator(device_id, device_name, rng)

    low, high, unit = SENSOR_RANGES.get(kind, DEFAULT_RANGE)

    def generate():
        data = {"deviceId": device_id, "timestamp": iso_timestamp()}
        if device_name:
            data["deviceName"] = device_name
        data["value"] = _reading(rng, low, high)
        if unit:
            data["unit"] = unit
        return data

    return generate


def _environment_generator(device_id: str, device_name: Optional[str], rng) -> Generator:
    # Multi-field board: temperature, humidity and battery in one message
    def generate():
        data = {"deviceId": device_id, "timestamp": iso_timestamp()}
        if device_name:
            data["deviceName"] = device_name
        data.update({
            "temperature": _reading(rng, 20.0, 30.0),
            "humidity": _reading(rng, 40.0, 80.0),
            "battery": rng.randint(50, 100),
        })
        return data

    return generate
