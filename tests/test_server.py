"""
Unit tests for HomeBridgeServer wiring and lifecycle operations.
"""

import asyncio

import pytest

import config
from container import container
from mqtt.server import HomeBridgeServer


@pytest.fixture(autouse=True)
def clean_container():
    container.clear()
    yield
    container.clear()


@pytest.fixture
def server(session, directory, transcriber):
    return HomeBridgeServer(session=session, directory=directory, transcriber=transcriber)


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_services_are_registered(self, server):
        assert container.get("mqtt_session") is server.session
        assert container.get("device_handler") is server.device_handler
        assert set(container.names()) == {"mqtt_session", "directory", "scheduler", "device_handler", "audio_handler"}

    @pytest.mark.asyncio
    async def test_start_and_stop(self, server, fake_client, transcriber, monkeypatch):
        monkeypatch.setattr(config, "GLOBAL_LISTENER_ENABLED", True)

        await server.start()
        await asyncio.sleep(0.01)

        assert server.session.is_connected
        assert "#" in fake_client.subscriptions

        server.start_simulation("d1", "salon/lampe/light", 1000)
        await server.stop()

        assert not server.session.is_connected
        assert server.list_simulations() == {"simulations": []}
        assert transcriber.closed
        assert container.names() == []

    @pytest.mark.asyncio
    async def test_global_listener_can_be_disabled(self, server, fake_client, monkeypatch):
        monkeypatch.setattr(config, "GLOBAL_LISTENER_ENABLED", False)

        await server.start()
        await asyncio.sleep(0.01)
        await server.stop()

        assert "#" not in fake_client.subscriptions

    @pytest.mark.asyncio
    async def test_run_forever_stops_on_request(self, server):
        runner = asyncio.create_task(server.run_forever())
        await asyncio.sleep(0.01)

        server.request_stop()
        await asyncio.wait_for(runner, 1)

        assert not server.session.is_connected


class TestSimulations:
    @pytest.mark.asyncio
    async def test_interval_below_minimum_rejected(self, server):
        with pytest.raises(ValueError):
            server.start_simulation("d1", "salon/x", config.SIMULATION_MIN_INTERVAL_MS - 1)

    @pytest.mark.asyncio
    async def test_device_id_required(self, server):
        with pytest.raises(ValueError):
            server.start_simulation("", "salon/x")

    @pytest.mark.asyncio
    async def test_start_list_stop(self, server):
        result = server.start_simulation("d1", "salon/x", config.SIMULATION_MIN_INTERVAL_MS)

        assert result == {"success": True, "deviceId": "d1", "topic": "salon/x"}
        assert server.list_simulations() == {"simulations": ["d1"]}
        assert server.stop_simulation("d1")["success"] is True
        assert server.stop_simulation("d1")["success"] is False
        assert server.stop_all_simulations() == {"success": True}


class TestTopics:
    @pytest.mark.asyncio
    async def test_subscribe_publish_unsubscribe(self, server, fake_client):
        await server.session.connect()

        assert await server.subscribe_topic("salon") == {"success": True, "topic": "salon"}
        assert await server.publish_to_topic("salon", "hello") == {"success": True}
        assert await server.unsubscribe_topic("salon") == {"success": True, "topic": "salon"}

        assert fake_client.published == [("salon", "hello")]
        assert fake_client.unsubscriptions == ["salon"]


class TestRoomsAndDevices:
    @pytest.mark.asyncio
    async def test_add_room_subscribes(self, server, fake_client):
        await server.session.connect()

        room = await server.add_room("Cuisine")

        assert room.topic == "cuisine"
        assert "cuisine" in server.session.registry

    @pytest.mark.asyncio
    async def test_update_room_moves_subscription(self, server, fake_client):
        await server.session.connect()
        await server.session.subscribe("salon")

        room = await server.update_room("r1", topic="living")

        assert room.topic == "living"
        assert fake_client.unsubscriptions == ["salon"]
        assert "living" in server.session.registry

    @pytest.mark.asyncio
    async def test_remove_room(self, server, fake_client):
        await server.session.connect()

        assert await server.remove_room("r1") is True
        assert await server.directory.get_room("r1") is None
        with pytest.raises(KeyError):
            await server.remove_room("r1")

    @pytest.mark.asyncio
    async def test_add_device_subscribes_derived_topic(self, server):
        await server.session.connect()

        device = await server.add_device("r1", "Spot", "light")

        assert device.topic == "salon/spot/light"
        assert "salon/spot/light" in server.session.registry

    @pytest.mark.asyncio
    async def test_rename_moves_subscription_and_simulation(self, server, fake_client):
        await server.session.connect()
        await server.session.subscribe("salon/lampe/light")
        server.start_simulation("d1", "salon/lampe/light", 5000)

        device = await server.update_device("d1", name="spot")

        assert device.topic == "salon/spot/light"
        assert fake_client.unsubscriptions == ["salon/lampe/light"]
        assert "salon/spot/light" in server.session.registry
        simulation = server.scheduler.get("d1")
        assert simulation.topic == "salon/spot/light"
        assert simulation.interval_ms == 5000
        server.stop_all_simulations()

    @pytest.mark.asyncio
    async def test_rename_keeps_custom_generator(self, server):
        await server.session.connect()

        def custom():
            return {"custom": True}

        server.start_simulation("d1", "salon/lampe/light", 5000, generator=custom)

        await server.update_device("d1", name="spot")

        simulation = server.scheduler.get("d1")
        assert simulation.generator is custom
        assert simulation.topic == "salon/spot/light"
        server.stop_all_simulations()

    @pytest.mark.asyncio
    async def test_rename_keeps_type_override(self, server):
        await server.session.connect()
        server.start_simulation("d1", "salon/lampe/light", 5000, device_type="temperature")

        await server.update_device("d1", name="spot")

        simulation = server.scheduler.get("d1")
        assert simulation.device_type == "temperature"
        assert simulation.generator()["unit"] == "°C"
        server.stop_all_simulations()

    @pytest.mark.asyncio
    async def test_remove_device_stops_simulation(self, server, fake_client):
        await server.session.connect()
        server.start_simulation("d1", "salon/lampe/light", 5000)

        assert await server.remove_device("d1") is True

        assert not server.scheduler.is_running("d1")
        assert fake_client.unsubscriptions == ["salon/lampe/light"]
        assert await server.directory.get_device("d1") is None

    @pytest.mark.asyncio
    async def test_handle_command_goes_through_session(self, server, fake_client):
        await server.session.connect()

        outcome = await server.handle_command("allume la lumière du salon")

        assert outcome.processed
        assert fake_client.published[0][0] == "salon/lampe/light"

    @pytest.mark.asyncio
    async def test_handle_audio(self, server, transcriber, fake_client):
        await server.session.connect()

        outcome = await server.handle_audio(b"RIFF", ".wav")

        assert outcome.processed
        assert transcriber.calls == [(b"RIFF", ".wav")]
