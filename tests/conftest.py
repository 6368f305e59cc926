"""
Shared fixtures for unit tests.

FakeMQTTClient stands in for ``paho.mqtt.client.Client``: it records every
call and answers with real paho ReasonCode objects, synchronously, so the
session runs end to end without a broker.
"""

from unittest.mock import AsyncMock, MagicMock

import paho.mqtt.client as mqtt
import pytest
from paho.mqtt.packettypes import PacketTypes
from paho.mqtt.reasoncodes import ReasonCode

from directory import InMemoryDirectory
from module.stt import STT
from mqtt.client import MQTTSession
from type import Device, Room


class FakeMessageInfo:
    def __init__(self, rc, mid):
        self.rc = rc
        self.mid = mid


class FakeMQTTClient:
    def __init__(self, auto_connect=True):
        self.auto_connect = auto_connect
        self.acknowledge = True
        self.reject_subscribe = set()
        self.reject_publish = set()

        self.on_connect = None
        self.on_disconnect = None
        self.on_message = None
        self.on_subscribe = None
        self.on_unsubscribe = None
        self.on_publish = None

        self.credentials = None
        self.endpoint = None
        self.loop_running = False
        self.subscriptions = []
        self.unsubscriptions = []
        self.published = []
        self._mid = 0

    def _next_mid(self):
        self._mid += 1
        return self._mid

    def username_pw_set(self, username, password=None):
        self.credentials = (username, password)

    def connect_async(self, host, port=1883, keepalive=60):
        self.endpoint = (host, port)

    def loop_start(self):
        self.loop_running = True
        if self.auto_connect:
            self.simulate_connect()

    def loop_stop(self):
        self.loop_running = False

    def disconnect(self):
        self.on_disconnect(self, None, None, ReasonCode(PacketTypes.DISCONNECT, "Normal disconnection"), None)

    def simulate_connect(self):
        self.on_connect(self, None, None, ReasonCode(PacketTypes.CONNACK, "Success"), None)

    def simulate_drop(self):
        self.on_disconnect(self, None, None, ReasonCode(PacketTypes.DISCONNECT, "Unspecified error"), None)

    def subscribe(self, topic, qos=0):
        mid = self._next_mid()
        self.subscriptions.append(topic)
        if self.acknowledge:
            name = "Unspecified error" if topic in self.reject_subscribe else "Granted QoS 1"
            self.on_subscribe(self, None, mid, [ReasonCode(PacketTypes.SUBACK, name)], None)
        return mqtt.MQTT_ERR_SUCCESS, mid

    def unsubscribe(self, topic):
        mid = self._next_mid()
        self.unsubscriptions.append(topic)
        if self.acknowledge:
            self.on_unsubscribe(self, None, mid, [ReasonCode(PacketTypes.UNSUBACK, "Success")], None)
        return mqtt.MQTT_ERR_SUCCESS, mid

    def publish(self, topic, payload=None, qos=0, retain=False):
        mid = self._next_mid()
        self.published.append((topic, payload))
        if self.acknowledge:
            name = "Unspecified error" if topic in self.reject_publish else "Success"
            self.on_publish(self, None, mid, ReasonCode(PacketTypes.PUBACK, name), None)
        return FakeMessageInfo(mqtt.MQTT_ERR_SUCCESS, mid)

    def deliver(self, topic, payload):
        """Simulate an inbound message from the broker"""
        msg = mqtt.MQTTMessage(topic=topic.encode())
        msg.payload = payload if isinstance(payload, bytes) else payload.encode()
        self.on_message(self, None, msg)


class FakeTranscriber(STT):
    def __init__(self, text="allume la lumière du salon"):
        self.text = text
        self.calls = []
        self.closed = False

    async def transcribe(self, audio, extension):
        self.calls.append((audio, extension))
        return self.text

    async def close(self):
        self.closed = True


@pytest.fixture
def fake_client():
    return FakeMQTTClient()


@pytest.fixture
def session(fake_client):
    """MQTTSession over a fake client, with short timings; call ``await session.connect()`` in the test."""
    s = MQTTSession(client=fake_client)
    s.connect_timeout = 0.05
    s.subscribe_retry_interval = 0.01
    s.ack_timeout = 0.05
    return s


@pytest.fixture
def mock_session():
    """Session double for components that only publish."""
    s = MagicMock()
    s.publish = AsyncMock()
    s.subscribe = AsyncMock()
    s.unsubscribe = AsyncMock()
    s.is_connected = True
    return s


@pytest.fixture
def salon():
    return Room(id="r1", name="salon", topic="salon")


@pytest.fixture
def lamp():
    return Device(id="d1", name="lampe", roomId="r1", type="light", topic="salon/lampe/light")


@pytest.fixture
def directory(salon, lamp):
    return InMemoryDirectory(rooms=[salon], devices=[lamp])


@pytest.fixture
def transcriber():
    return FakeTranscriber()
