"""
Home Bridge - MQTT Server
=========================

This package connects the smart-home backend to the MQTT broker:
- Keeps one broker session with deferred subscribe and fail-fast publish
- Runs simulated sensors that publish synthetic readings
- Turns spoken commands into messages on the matching device topics
- Re-emits inbound messages as server-push records

The server class lives in mqtt.server (HomeBridgeServer).

MQTT Topics:
- <room>: room topic, subscribed when the room is created
- <room>/<deviceName>/<deviceType>: per-device topic, carrying both simulated
  readings and commands ({timestamp, deviceId, deviceName, state, value?})
- #: diagnostic listener, logging every message
"""
