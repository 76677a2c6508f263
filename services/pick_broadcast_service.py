"""
Real-time pick broadcasting

Each draft session has a channel named `draft-updates-{session_id}` carrying
`new_pick` events. Payloads are opaque dictionaries and reach subscribers
unchanged.

Two backends:
- in-process asyncio queues (single bot process, the default)
- Redis pub/sub when REDIS_URL is configured (bot and stream server in
  separate processes)
"""
import asyncio
import json
import logging
from typing import Optional, Dict, Set, Any, AsyncIterator

import redis.asyncio as redis

from config import get_config

logger = logging.getLogger(f'{__name__}.PickBroadcaster')

NEW_PICK_EVENT = "new_pick"


def channel_name(session_id: str) -> str:
    """Broadcast channel for a draft session."""
    return f"draft-updates-{session_id}"


class PickBroadcaster:
    """
    Publish/subscribe hub for draft pick events.

    Subscriptions are async iterators; leaving the `async for` (or closing
    the generator) removes the subscription.
    """

    def __init__(self, redis_url: Optional[str] = None, queue_size: int = 100):
        self.redis_url = redis_url
        self.queue_size = queue_size
        self._subscribers: Dict[str, Set[asyncio.Queue]] = {}
        self._redis: Optional[redis.Redis] = None

    @property
    def uses_redis(self) -> bool:
        return bool(self.redis_url)

    def _get_redis(self) -> redis.Redis:
        if self._redis is None:
            logger.info(f"Connecting pick broadcaster to Redis at {self.redis_url}")
            self._redis = redis.from_url(self.redis_url, decode_responses=True)
        return self._redis

    def subscriber_count(self, session_id: str) -> int:
        """Local subscribers for a session (in-process backend only)."""
        return len(self._subscribers.get(channel_name(session_id), ()))

    async def publish(self, session_id: str, payload: Dict[str, Any], event: str = NEW_PICK_EVENT) -> int:
        """
        Broadcast an event to everyone subscribed to the session.

        Returns:
            Number of subscribers the event was delivered to
        """
        channel = channel_name(session_id)
        message = {'event': event, 'payload': payload}

        if self.uses_redis:
            delivered = await self._get_redis().publish(channel, json.dumps(message, default=str))
            logger.debug(f"Published {event} to {channel} via Redis ({delivered} receivers)")
            return delivered

        delivered = 0
        for queue in list(self._subscribers.get(channel, ())):
            try:
                queue.put_nowait(message)
                delivered += 1
            except asyncio.QueueFull:
                logger.warning(f"Subscriber queue full on {channel}; dropping {event}")
        logger.debug(f"Published {event} to {channel} ({delivered} receivers)")
        return delivered

    async def subscribe(self, session_id: str, event: str = NEW_PICK_EVENT) -> AsyncIterator[Dict[str, Any]]:
        """
        Yield payloads of the given event for a session until the caller stops.
        """
        channel = channel_name(session_id)
        if self.uses_redis:
            async for payload in self._subscribe_redis(channel, event):
                yield payload
            return

        queue: asyncio.Queue = asyncio.Queue(maxsize=self.queue_size)
        self._subscribers.setdefault(channel, set()).add(queue)
        logger.info(f"Subscriber joined {channel}")
        try:
            while True:
                message = await queue.get()
                if message.get('event') == event:
                    yield message.get('payload')
        finally:
            subscribers = self._subscribers.get(channel)
            if subscribers is not None:
                subscribers.discard(queue)
                if not subscribers:
                    self._subscribers.pop(channel, None)
            logger.info(f"Subscriber left {channel}")

    async def _subscribe_redis(self, channel: str, event: str) -> AsyncIterator[Dict[str, Any]]:
        pubsub = self._get_redis().pubsub()
        await pubsub.subscribe(channel)
        logger.info(f"Redis subscriber joined {channel}")
        try:
            async for raw in pubsub.listen():
                if raw.get('type') != 'message':
                    continue
                try:
                    message = json.loads(raw['data'])
                except (TypeError, ValueError):
                    logger.warning(f"Ignoring malformed message on {channel}")
                    continue
                if message.get('event') == event:
                    yield message.get('payload')
        finally:
            await pubsub.unsubscribe(channel)
            await pubsub.aclose()
            logger.info(f"Redis subscriber left {channel}")

    async def close(self) -> None:
        """Close the Redis connection, if any."""
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
            logger.info("Pick broadcaster Redis connection closed")


_broadcaster: Optional[PickBroadcaster] = None


def get_pick_broadcaster() -> PickBroadcaster:
    """Shared broadcaster configured from REDIS_URL."""
    global _broadcaster
    if _broadcaster is None:
        _broadcaster = PickBroadcaster(redis_url=get_config().redis_url or None)
    return _broadcaster


async def publish_pick(session_id: Optional[str], payload: Dict[str, Any]) -> int:
    """Broadcast a new pick; failures are logged and swallowed so the pick itself stands."""
    if not session_id:
        return 0
    try:
        return await get_pick_broadcaster().publish(session_id, payload)
    except Exception as e:
        logger.warning(f"Failed to broadcast pick for session {session_id}: {e}")
        return 0
