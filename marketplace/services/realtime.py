"""Real-time fan-out for task events, chat and screen-share signaling via Redis pub/sub."""

import json
import logging
from collections.abc import AsyncIterator
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Any

import redis
import redis.asyncio as aioredis

from marketplace.config import get_settings

if TYPE_CHECKING:
    from redis.asyncio.client import PubSub

logger = logging.getLogger(__name__)
settings = get_settings()


class TaskEventType(StrEnum):
    """Event types published on a task's channel."""

    TASK_STATUS_CHANGED = "task_status_changed"
    PAYMENT_VERIFIED = "payment_verified"
    FILE_UPLOADED = "file_uploaded"
    MESSAGE_CREATED = "message_created"


def task_channel(task_id: int) -> str:
    return f"task:{task_id}"


def screenshare_channel(task_id: int) -> str:
    return f"screenshare:{task_id}"


# Synchronous Redis client for use in API endpoints
_sync_redis: redis.Redis | None = None


def get_sync_redis() -> redis.Redis:
    """Get synchronous Redis client for publishing from API endpoints."""
    global _sync_redis
    if _sync_redis is None:
        _sync_redis = redis.from_url(settings.redis_url)
    return _sync_redis


def _publish(channel: str, message: dict[str, Any]) -> None:
    try:
        redis_client = get_sync_redis()
        redis_client.publish(channel, json.dumps(message, default=str))
        logger.debug(f"Published {message.get('type')} to {channel}")
    except Exception as e:
        # Don't fail the request if pub/sub fails
        logger.error(f"Failed to publish to {channel}: {e}")


def publish_task_event(
    task_id: int, event_type: TaskEventType, data: dict[str, Any] | None = None
) -> None:
    """Publish an event to a task's Redis channel.

    Called from the service layer after mutations. Best-effort: errors are
    logged, never raised.
    """
    _publish(
        task_channel(task_id),
        {
            "type": event_type,
            "task_id": task_id,
            "timestamp": datetime.now(UTC).isoformat(),
            "data": data or {},
        },
    )


def publish_screenshare_signal(task_id: int, sender_id: int, signal: Any) -> None:
    """Relay a WebRTC signaling payload to the other participants of a task."""
    _publish(
        screenshare_channel(task_id),
        {"type": "signal", "task_id": task_id, "from": sender_id, "signal": signal},
    )


class RealtimeService:
    """Async Redis pub/sub service for WebSocket connections."""

    def __init__(self) -> None:
        self._redis: aioredis.Redis | None = None
        self._pubsub: PubSub | None = None

    async def _get_redis(self) -> aioredis.Redis:
        if self._redis is None:
            self._redis = aioredis.from_url(settings.redis_url)
        return self._redis

    async def subscribe(self, channel: str) -> AsyncIterator[dict]:
        """Subscribe to a Redis channel and yield messages."""
        redis_conn = await self._get_redis()
        self._pubsub = redis_conn.pubsub()
        await self._pubsub.subscribe(channel)

        try:
            async for message in self._pubsub.listen():
                if message["type"] == "message":
                    try:
                        data = json.loads(message["data"])
                        yield data
                    except json.JSONDecodeError:
                        logger.warning(f"Invalid JSON in pub/sub message: {message['data']}")
        finally:
            if self._pubsub:
                await self._pubsub.unsubscribe(channel)

    async def cleanup(self) -> None:
        """Clean up Redis connections."""
        if self._pubsub:
            await self._pubsub.close()
        if self._redis:
            await self._redis.close()
