import pytest

from vendorsync_api.infrastructure.messaging.in_memory_event_bus import InMemoryEventBus


class TestInMemoryEventBus:

    @pytest.mark.asyncio
    async def test_sync_and_async_handlers_receive_messages(self):
        bus = InMemoryEventBus()
        received = []

        async def async_handler(topic, data):
            received.append(("async", topic, data))

        bus.subscribe("dashboard-refresh", lambda topic, data: received.append(("sync", topic, data)))
        bus.subscribe("dashboard-refresh", async_handler)

        await bus.publish_message("dashboard-refresh", {"source": "test"})

        assert received == [
            ("sync", "dashboard-refresh", {"source": "test"}),
            ("async", "dashboard-refresh", {"source": "test"}),
        ]

    @pytest.mark.asyncio
    async def test_failing_handler_does_not_stop_delivery(self):
        bus = InMemoryEventBus()
        received = []

        def broken(topic, data):
            raise RuntimeError("handler bug")

        bus.subscribe("total-spend-update", broken)
        bus.subscribe("total-spend-update", lambda topic, data: received.append(data))

        await bus.publish_message("total-spend-update", {"totalSpend": 1.0})

        assert received == [{"totalSpend": 1.0}]

    @pytest.mark.asyncio
    async def test_unsubscribe_and_close(self):
        bus = InMemoryEventBus()
        received = []
        unsubscribe = bus.subscribe("dashboard-refresh", lambda topic, data: received.append(data))

        unsubscribe()
        unsubscribe()
        await bus.publish_message("dashboard-refresh", {})
        await bus.publish_message("no-subscribers", {})

        assert received == []

        bus.subscribe("dashboard-refresh", lambda topic, data: received.append(data))
        await bus.close()
        await bus.publish_message("dashboard-refresh", {})
        assert received == []
