import json
import logging
import threading

import redis
from django.conf import settings

from .event_bus_interface import EventBus


logger = logging.getLogger(__name__)


class RedisEventBus(EventBus):
    """Redis pub/sub implementation of the event bus (channels ``events.<type>``)."""

    def __init__(self, redis_url: str = None):
        super().__init__()
        self.redis_url = redis_url or getattr(settings, "REDIS_URL", "redis://localhost:6379/0")
        self.redis_client = redis.from_url(self.redis_url)
        self._listening = False

    def publish(self, event_type: str, payload: dict):
        message = self.build_envelope(event_type, payload)
        try:
            self.redis_client.publish(f"events.{event_type}", json.dumps(message, default=str))
            logger.info(f"Published event: {event_type}")
        except redis.RedisError as e:
            # Publishing is best effort, periodic sweeps repair anything a lost event would have triggered
            logger.error(f"Failed to publish event {event_type}: {str(e)}")

    def start_listening(self):
        """Start listening to subscribed channels in a background thread."""
        if self._listening or not self._subscribers:
            return

        channels = [f"events.{event_type}" for event_type in self._subscribers]

        def listen():
            try:
                pubsub = self.redis_client.pubsub()
                pubsub.subscribe(*channels)
                logger.info(f"EventBus listening on: {channels}")
                for message in pubsub.listen():
                    if message["type"] == "message":
                        self._handle_message(message)
            except redis.RedisError as e:
                logger.error(f"EventBus listener crashed: {e}")
                self._listening = False

        self._listening = True
        threading.Thread(target=listen, daemon=True).start()

    def _handle_message(self, message):
        try:
            envelope = json.loads(message["data"])
        except (TypeError, ValueError) as e:
            logger.error(f"Discarding malformed event message: {e}")
            return
        self.dispatch(envelope)
