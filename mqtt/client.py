"""
MQTT session: one broker connection shared by every component
"""
import asyncio
import inspect
import itertools
import uuid
from typing import Any, Awaitable, Callable, Dict, Optional, Union

import paho.mqtt.client as mqtt

import config
from errors import MQTTError, NotConnected, PublishFailed, SubscribeFailed, UnsubscribeFailed
from log import setup_logger
from mqtt.handlers.monitor import log_message
from mqtt.topics import WILDCARD_ALL, TopicRegistry
from mqtt.utils.helpers import decode_payload, encode_payload
from type import InboundMessage

logger = setup_logger(__name__)

Listener = Callable[[InboundMessage], Union[None, Awaitable[None]]]


class MQTTSession:
    def __init__(self, client=None, registry: Optional[TopicRegistry] = None):
        """
        Wrap a paho client with connection-aware subscribe/unsubscribe/publish

        Args:
            client: paho ``mqtt.Client`` (or a stand-in with the same interface);
                a TLS client configured from ``config`` is built when omitted
            registry: TopicRegistry tracking active subscriptions
        """
        self.client_id = f"{config.MQTT_CLIENT_PREFIX}-{uuid.uuid4().hex[:8]}"
        self.client = client if client is not None else self._create_client()
        self.registry = registry if registry is not None else TopicRegistry()

        self.qos = config.MQTT_QOS
        self.connect_timeout = config.MQTT_CONNECT_TIMEOUT
        self.subscribe_retry_interval = config.MQTT_SUBSCRIBE_RETRY_INTERVAL
        self.ack_timeout = config.MQTT_ACK_TIMEOUT

        self.is_connected = False
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._connected_event = asyncio.Event()
        # message id -> future resolved by the broker acknowledgement
        self._pending: Dict[int, asyncio.Future] = {}
        self._listeners: Dict[int, Listener] = {}
        self._listener_ids = itertools.count()
        self._global_listener_dispose = None

        self.client.on_connect = self._on_connect
        self.client.on_disconnect = self._on_disconnect
        self.client.on_message = self._on_message
        self.client.on_subscribe = self._on_subscribe
        self.client.on_unsubscribe = self._on_unsubscribe
        self.client.on_publish = self._on_publish

    def _create_client(self):
        client = mqtt.Client(
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
            client_id=self.client_id,
            clean_session=False,
            protocol=mqtt.MQTTv311,
            transport=config.BROKER_TRANSPORT,
        )
        client.max_inflight_messages_set(100)
        client.reconnect_delay_set(
            min_delay=config.MQTT_RECONNECT_MIN_DELAY,
            max_delay=config.MQTT_RECONNECT_MAX_DELAY,
        )
        if config.BROKER_TRANSPORT == "websockets":
            client.ws_set_options(path=config.BROKER_WS_PATH)
        if config.BROKER_USE_TLS:
            client.tls_set()
            if config.BROKER_TLS_INSECURE:
                client.tls_insecure_set(True)
        return client

    async def connect(self, host: Optional[str] = None, port: Optional[int] = None,
                      username: Optional[str] = None, password: Optional[str] = None) -> "MQTTSession":
        """
        Open the broker connection. Returns once the broker acknowledges it or
        after ``connect_timeout`` seconds; in the latter case the session keeps
        retrying in the background and gated calls defer or fail as documented.
        """
        self._loop = asyncio.get_running_loop()
        host = host or config.BROKER_HOST
        port = port or config.BROKER_PORT
        username = config.MQTT_USER if username is None else username
        password = config.MQTT_PASS if password is None else password

        if username:
            self.client.username_pw_set(username, password)

        try:
            logger.info(f"Connecting to MQTT broker {host}:{port}...")
            self.client.connect_async(host, port, keepalive=config.MQTT_KEEPALIVE)
            self.client.loop_start()
        except Exception as e:
            logger.error(f"Cannot start MQTT connection to {host}:{port}: {e}")
            return self

        try:
            await asyncio.wait_for(self._connected_event.wait(), timeout=self.connect_timeout)
        except asyncio.TimeoutError:
            logger.warning("MQTT connection timeout - proceeding anyway")
        return self

    async def disconnect(self):
        """
        Close the connection and stop the network thread
        """
        try:
            self.client.disconnect()
            self.client.loop_stop()
        except Exception as e:
            logger.error(f"Error while disconnecting from MQTT broker: {e}")
        self._set_disconnected()
        for mid, future in list(self._pending.items()):
            if not future.done():
                future.set_exception(NotConnected(f"message {mid}", "session closed"))
        self._pending.clear()
        logger.info("Disconnected from MQTT broker")

    # ------------------------------------------------------------------ #
    # paho callbacks: these run on the network thread and only hand work
    # over to the event loop.
    # ------------------------------------------------------------------ #

    def _call_in_loop(self, callback, *args):
        if self._loop is None or self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(callback, *args)

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        if reason_code != 0:
            logger.error(f"MQTT connection refused: {reason_code}")
            return
        self._call_in_loop(self._set_connected)

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        logger.warning(f"Disconnected from MQTT broker: {reason_code}")
        self._call_in_loop(self._set_disconnected)

    def _on_message(self, client, userdata, msg):
        message = InboundMessage(topic=msg.topic, payload=decode_payload(msg.payload))
        self._call_in_loop(self._dispatch, message)

    def _on_subscribe(self, client, userdata, mid, reason_code_list, properties=None):
        failures = [str(rc) for rc in reason_code_list if rc.is_failure]
        self._call_in_loop(self._resolve_ack, mid, ", ".join(failures) or None)

    def _on_unsubscribe(self, client, userdata, mid, reason_code_list, properties=None):
        failures = [str(rc) for rc in reason_code_list if rc.is_failure]
        self._call_in_loop(self._resolve_ack, mid, ", ".join(failures) or None)

    def _on_publish(self, client, userdata, mid, reason_code, properties=None):
        self._call_in_loop(self._resolve_ack, mid, str(reason_code) if reason_code.is_failure else None)

    # ------------------------------------------------------------------ #
    # event loop side
    # ------------------------------------------------------------------ #

    def _set_connected(self):
        if self.is_connected:
            return
        self.is_connected = True
        self._connected_event.set()
        logger.info("Connected to MQTT broker")

        # The broker may have lost our subscriptions while we were away
        for topic in self.registry.snapshot():
            result, _ = self.client.subscribe(topic, qos=self.qos)
            if result != mqtt.MQTT_ERR_SUCCESS:
                logger.error(f"Failed to restore subscription to {topic}: {mqtt.error_string(result)}")
            else:
                logger.debug(f"Restored subscription to {topic}")

    def _set_disconnected(self):
        if not self.is_connected:
            return
        self.is_connected = False
        self._connected_event.clear()

    def _resolve_ack(self, mid: int, failure: Optional[str]):
        future = self._pending.get(mid)
        if future is not None and not future.done():
            future.set_result(failure)

    def _dispatch(self, message: InboundMessage):
        for listener in list(self._listeners.values()):
            try:
                result = listener(message)
                if inspect.isawaitable(result):
                    task = asyncio.ensure_future(result)
                    task.add_done_callback(self._log_listener_failure)
            except Exception as e:
                logger.error(f"Listener failed on message from {message.topic}: {e}", exc_info=True)

    @staticmethod
    def _log_listener_failure(task: asyncio.Future):
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Async listener failed: {task.exception()}")

    async def _wait_ack(self, mid: int, topic: str, error_cls) -> None:
        # Registered before the first await so the acknowledgement cannot be missed
        future = self._loop.create_future()
        self._pending[mid] = future
        try:
            failure = await asyncio.wait_for(future, timeout=self.ack_timeout)
        except asyncio.TimeoutError:
            raise error_cls(topic, "no acknowledgement from broker")
        finally:
            self._pending.pop(mid, None)
        if failure:
            raise error_cls(topic, failure)

    # ------------------------------------------------------------------ #
    # public operations
    # ------------------------------------------------------------------ #

    async def subscribe(self, topic: str):
        """
        Subscribe to a topic. While disconnected the call waits and retries
        every ``subscribe_retry_interval`` seconds, without limit.

        Raises:
            SubscribeFailed: the broker rejected the subscription
        """
        while not self.is_connected:
            logger.warning(f"Not connected to broker, delaying subscription to {topic}")
            await asyncio.sleep(self.subscribe_retry_interval)

        result, mid = self.client.subscribe(topic, qos=self.qos)
        if result != mqtt.MQTT_ERR_SUCCESS:
            logger.error(f"Failed to subscribe to {topic}: {mqtt.error_string(result)}")
            raise SubscribeFailed(topic, mqtt.error_string(result))
        try:
            await self._wait_ack(mid, topic, SubscribeFailed)
        except MQTTError as e:
            logger.error(str(e))
            raise
        self.registry.add(topic)
        logger.info(f"Subscribed to topic: {topic}")

    async def unsubscribe(self, topic: str):
        """
        Unsubscribe from a topic. Without a connection there is nothing to
        tear down and the call succeeds immediately.

        Raises:
            UnsubscribeFailed: the broker rejected the request
        """
        if not self.is_connected:
            logger.warning(f"Not connected to broker, cannot unsubscribe from {topic}")
            self.registry.discard(topic)
            return

        result, mid = self.client.unsubscribe(topic)
        if result != mqtt.MQTT_ERR_SUCCESS:
            logger.error(f"Failed to unsubscribe from {topic}: {mqtt.error_string(result)}")
            raise UnsubscribeFailed(topic, mqtt.error_string(result))
        try:
            await self._wait_ack(mid, topic, UnsubscribeFailed)
        except MQTTError as e:
            logger.error(str(e))
            raise
        self.registry.discard(topic)
        logger.info(f"Unsubscribed from topic: {topic}")

    async def publish(self, topic: str, payload: Any, retain: bool = False):
        """
        Publish a message. Fails fast when not connected.

        Args:
            topic (str): Destination topic
            payload: dict/list are sent as JSON, str/bytes unchanged
            retain (bool): Retain flag

        Raises:
            NotConnected: no live broker session
            PublishFailed: the broker or the client rejected the message
        """
        if not self.is_connected:
            logger.warning(f"Not connected to broker, cannot publish to {topic}")
            raise NotConnected(topic)

        data = encode_payload(payload)
        info = self.client.publish(topic, data, qos=self.qos, retain=retain)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            logger.error(f"Failed to publish to {topic}: {mqtt.error_string(info.rc)}")
            raise PublishFailed(topic, mqtt.error_string(info.rc))
        try:
            await self._wait_ack(info.mid, topic, PublishFailed)
        except MQTTError as e:
            logger.error(str(e))
            raise
        logger.debug(f"Published to {topic}: {data}")

    def on_message(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener for every inbound message.

        Returns:
            A function removing exactly this registration; calling it again does nothing
        """
        listener_id = next(self._listener_ids)
        self._listeners[listener_id] = listener

        def dispose():
            self._listeners.pop(listener_id, None)

        return dispose

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    async def start_global_listener(self):
        """
        Subscribe to every topic and log each message with its guessed category
        """
        logger.info("🔍 Starting global MQTT topic listener for debugging")
        try:
            await self.subscribe(WILDCARD_ALL)
        except MQTTError as e:
            logger.error(f"Failed to start global topic listener: {e}")
            return
        if self._global_listener_dispose is None:
            self._global_listener_dispose = self.on_message(log_message)
        logger.info("🎯 Global MQTT topic listener active")
