"""
Diagnostic classification of every message seen by the global '#' listener.
The category only picks the log line; nothing routes on it.
"""
from log import setup_logger
from type import InboundMessage

logger = setup_logger(__name__)

LABELS = {
    "light": "💡 LIGHT",
    "temperature": "🌡️ TEMPERATURE",
    "humidity": "💧 HUMIDITY",
    "radiator": "🔥 RADIATOR",
    "other": "📊 OTHER",
}


def classify_message(message: InboundMessage) -> str:
    """
    Guess what kind of device produced a message from its topic or payload shape
    """
    topic = message.topic
    data = message.payload if isinstance(message.payload, dict) else {}
    declared = data.get("type")

    if "light" in topic or declared == "light":
        return "light"
    if "temperature" in topic or "temperature" in data or declared == "temperature":
        return "temperature"
    if "humidity" in topic or "humidity" in data or declared == "humidity":
        return "humidity"
    if "radiator" in topic or declared == "radiator":
        return "radiator"
    return "other"


def log_message(message: InboundMessage):
    try:
        category = classify_message(message)
        logger.debug(f"{LABELS[category]} [{message.topic}]: {message.payload}")
    except Exception as e:
        logger.error(f"Error processing MQTT message: {e}")
