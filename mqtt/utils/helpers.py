"""
Helper functions for MQTT payloads and timestamps
"""
import json
import time
from datetime import datetime, timezone


def encode_payload(payload):
    """
    Serialize a payload for the broker

    Args:
        payload: str and bytes are sent as-is, anything else as JSON text
    """
    if isinstance(payload, (str, bytes, bytearray)):
        return payload
    return json.dumps(payload, ensure_ascii=False)


def decode_payload(raw: bytes):
    """
    Decode an inbound payload: JSON when it parses, the raw UTF-8 text otherwise
    """
    text = raw.decode("utf-8", errors="replace")
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


def iso_timestamp() -> str:
    """Current UTC time as ISO-8601 with millisecond precision, e.g. 2024-05-01T10:00:00.123Z"""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def now_ms() -> int:
    return int(time.time() * 1000)
