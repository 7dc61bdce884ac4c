"""
Event Bus Tests
================

Unit tests for the in-memory and Redis event buses and domain event publishing.
"""

import json
from decimal import Decimal
from unittest.mock import MagicMock, patch

import redis
from django.test import TestCase

from infrastructure.events import InMemoryEventBus, RedisEventBus, get_event_bus
from marketplace.domain.events import OrderPlacedEvent, publish_event


class InMemoryEventBusTest(TestCase):
    def setUp(self):
        self.bus = InMemoryEventBus()

    def test_publish_delivers_envelope(self):
        handler = MagicMock(__name__="handler")
        self.bus.subscribe("order.placed", handler)

        self.bus.publish("order.placed", {"order_id": "abc"})

        envelope = handler.call_args[0][0]
        self.assertEqual(envelope["event_type"], "order.placed")
        self.assertEqual(envelope["payload"], {"order_id": "abc"})
        self.assertIn("occurred_at", envelope)
        self.assertEqual(len(self.bus.events_of_type("order.placed")), 1)

    def test_handler_registered_once(self):
        handler = MagicMock(__name__="handler")
        self.bus.subscribe("order.paid", handler)
        self.bus.subscribe("order.paid", handler)

        self.bus.publish("order.paid", {})

        handler.assert_called_once()

    def test_failing_handler_does_not_stop_others(self):
        broken = MagicMock(__name__="broken", side_effect=RuntimeError("boom"))
        working = MagicMock(__name__="working")
        self.bus.subscribe("order.collected", broken)
        self.bus.subscribe("order.collected", working)

        self.bus.publish("order.collected", {"order_id": "abc"})

        working.assert_called_once()

    def test_clear(self):
        self.bus.publish("order.paid", {})
        self.bus.clear()
        self.assertEqual(self.bus.published, [])


class RedisEventBusTest(TestCase):
    @patch("infrastructure.events.redis_event_bus.redis.from_url")
    def test_publish_to_event_channel(self, mock_from_url):
        bus = RedisEventBus("redis://localhost:6379/0")

        bus.publish("order.paid", {"order_id": "abc", "amount": Decimal("10.00")})

        channel, message = mock_from_url.return_value.publish.call_args[0]
        self.assertEqual(channel, "events.order.paid")
        self.assertEqual(json.loads(message)["payload"], {"order_id": "abc", "amount": "10.00"})

    @patch("infrastructure.events.redis_event_bus.redis.from_url")
    def test_publish_failure_is_logged(self, mock_from_url):
        mock_from_url.return_value.publish.side_effect = redis.ConnectionError("down")
        bus = RedisEventBus()

        with self.assertLogs("infrastructure.events.redis_event_bus", level="ERROR"):
            bus.publish("order.paid", {})

    @patch("infrastructure.events.redis_event_bus.redis.from_url")
    def test_malformed_message_is_discarded(self, mock_from_url):
        bus = RedisEventBus()
        handler = MagicMock(__name__="handler")
        bus.subscribe("order.paid", handler)

        bus._handle_message({"data": b"not json"})
        bus._handle_message({"data": json.dumps(bus.build_envelope("order.paid", {"order_id": "abc"}))})

        handler.assert_called_once()


class PublishEventTest(TestCase):
    def setUp(self):
        get_event_bus().clear()

    def test_published_after_commit(self):
        event = OrderPlacedEvent(order_id="abc", buyer_id="b", seller_id="s", total_amount=Decimal("120.00"))

        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            publish_event(event)
            self.assertEqual(get_event_bus().events_of_type("order.placed"), [])

        self.assertEqual(len(callbacks), 1)
        published = get_event_bus().events_of_type("order.placed")
        self.assertEqual(published[0]["payload"]["total_amount"], "120.00")

    def test_not_published_without_commit(self):
        with self.captureOnCommitCallbacks(execute=False):
            publish_event(OrderPlacedEvent(order_id="abc", buyer_id="b", seller_id="s", total_amount=Decimal("1")))

        self.assertEqual(get_event_bus().events_of_type("order.placed"), [])
