"""
Topic naming and bookkeeping of active subscriptions
"""
import re
import unicodedata
from typing import List

WILDCARD_ALL = "#"

_COMBINING_MARKS = re.compile(r"[\u0300-\u036f]")
_WHITESPACE = re.compile(r"\s+")


def normalize_topic(text: str) -> str:
    """
    Normalize a human-entered name into topic form: diacritics stripped,
    whitespace removed, lowercased. Normalizing twice gives the same result.

    >>> normalize_topic("Living Room/Lampe/light")
    'livingroom/lampe/light'
    """
    decomposed = unicodedata.normalize("NFD", text)
    stripped = _COMBINING_MARKS.sub("", decomposed)
    return _WHITESPACE.sub("", stripped).lower()


def build_device_topic(room_topic: str, device_name: str, device_type: str) -> str:
    """Derive a device topic as <roomTopic>/<deviceName>/<deviceType>"""
    return normalize_topic(f"{room_topic}/{device_name}/{device_type}")


class TopicRegistry:
    """Set of topics currently subscribed on the broker, in subscription order"""

    def __init__(self):
        self._topics = {}

    def add(self, topic: str) -> bool:
        """Record a subscription. Returns False if the topic was already tracked."""
        if topic in self._topics:
            return False
        self._topics[topic] = None
        return True

    def discard(self, topic: str) -> bool:
        """Forget a subscription. Returns False if the topic was not tracked."""
        if topic not in self._topics:
            return False
        del self._topics[topic]
        return True

    def snapshot(self) -> List[str]:
        return list(self._topics)

    def clear(self):
        self._topics.clear()

    def __contains__(self, topic: str) -> bool:
        return topic in self._topics

    def __len__(self) -> int:
        return len(self._topics)
