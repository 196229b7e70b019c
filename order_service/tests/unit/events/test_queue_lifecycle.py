"""
Unit tests for starting and stopping the order queue with the service.
"""

from unittest.mock import AsyncMock, patch

import pytest

from order_service.app.core import events


@pytest.fixture(autouse=True)
def reset_queue():
    yield
    events._order_queue = None


class TestQueueLifecycle:
    @pytest.mark.asyncio
    async def test_init_events_starts_consumer(self):
        with patch.object(
            events.OrderQueueConsumer, "start", new=AsyncMock()
        ) as start:
            await events.init_events()

        queue = events.get_order_queue()
        assert queue is not None
        assert queue.topic == "orders"
        assert queue.client_id.endswith("-consumer")
        start.assert_awaited_once_with(timeout=30.0)

    @pytest.mark.asyncio
    async def test_unreachable_broker_does_not_block_startup(self):
        with patch.object(events.OrderQueueConsumer, "start", new=AsyncMock()):
            await events.init_events()

        assert events.get_order_queue() is not None
        assert not events.get_order_queue().is_connected

    @pytest.mark.asyncio
    async def test_close_events_stops_consumer(self):
        with patch.object(events.OrderQueueConsumer, "start", new=AsyncMock()):
            await events.init_events()
        queue = events.get_order_queue()

        with patch.object(queue, "stop", new=AsyncMock()) as stop:
            await events.close_events()

        stop.assert_awaited_once()
        assert events.get_order_queue() is None
