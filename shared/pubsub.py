import logging
from typing import List, Optional

import redis

from .events import Event

logger = logging.getLogger(__name__)


def tournament_channel(tournament_id: str) -> str:
    return f"tournament:{tournament_id}:events"


def event_log_key(tournament_id: str) -> str:
    return f"tournament:{tournament_id}:event_log"


class EventPublisher:
    """
    Fans out change events so open standings views can re-fetch.

    With a Redis client, events go to the tournament channel and a bounded
    event log list. Without one (tests, local development) they are only
    logged.
    """

    def __init__(self, redis_client: Optional[redis.Redis] = None, log_size: int = 1000):
        self.redis = redis_client
        self.log_size = log_size

    @classmethod
    def from_url(cls, redis_url: Optional[str], log_size: int = 1000) -> "EventPublisher":
        if not redis_url:
            logger.info("EventPublisher running without Redis (events are logged only)")
            return cls(None, log_size)
        client = redis.from_url(
            redis_url,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5
        )
        return cls(client, log_size)

    @property
    def enabled(self) -> bool:
        return self.redis is not None

    def publish_tournament_event(self, event: Event):
        if not self.redis:
            logger.info(f"Local mode: {event.type} for {event.tournament_id}: {event.data}")
            return

        payload = event.to_json()
        key = event_log_key(event.tournament_id)
        try:
            self.redis.publish(tournament_channel(event.tournament_id), payload)
            self.redis.lpush(key, payload)
            self.redis.ltrim(key, 0, self.log_size - 1)
        except redis.RedisError as e:
            # The change itself is already committed
            logger.error(f"Failed to publish {event.type} for {event.tournament_id}: {e}")

    def recent_events(self, tournament_id: str, count: int = 50) -> List[Event]:
        if not self.redis:
            return []
        events_json = self.redis.lrange(event_log_key(tournament_id), 0, count - 1)
        return [Event.from_json(e) for e in events_json]

    def open_stream(self, tournament_id: str):
        """Dedicated pubsub connection for one SSE client."""
        pubsub = self.redis.pubsub(ignore_subscribe_messages=True)
        pubsub.subscribe(tournament_channel(tournament_id))
        return pubsub

    def ping(self) -> bool:
        if not self.redis:
            return False
        try:
            return bool(self.redis.ping())
        except redis.RedisError:
            return False
