"""
Redis Pub/Sub publisher for statistics events.

Events are serialized with orjson and sent to the stats channel
(settings.REDIS_CHANNEL_STATS unless another channel is given). Transient
connection errors are retried a few times before giving up.
"""

import logging
from typing import Optional

import orjson
import redis.asyncio as redis
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from homeowner_stats.utils.config import settings
from homeowner_stats.utils.schemas import StatisticsEvent

logger = logging.getLogger(__name__)


def encode_event(event: StatisticsEvent) -> bytes:
    """Wire form of a statistics event: UTF-8 JSON, ISO-8601 timestamp."""
    return orjson.dumps(event.model_dump(mode="json"))


class StatisticsPublisher:
    """Publishes StatisticsEvent payloads to one Redis channel."""

    def __init__(self, redis_url: Optional[str] = None, channel: Optional[str] = None) -> None:
        self.redis_url = redis_url or settings.REDIS_URL
        self.channel = channel or settings.REDIS_CHANNEL_STATS
        self.client: Optional[redis.Redis] = None

    async def connect(self) -> None:
        if self.client is None:
            self.client = redis.from_url(
                self.redis_url,
                max_connections=settings.REDIS_MAX_CONNECTIONS,
                decode_responses=False,
            )

    @retry(
        retry=retry_if_exception_type((redis.ConnectionError, redis.TimeoutError)),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=5),
        reraise=True,
    )
    async def publish(self, event: StatisticsEvent) -> int:
        """Send `event` to the stats channel.

        Returns:
            Number of subscribers that received the event

        Raises:
            redis.RedisError: If publishing still fails after retries
        """
        if self.client is None:
            await self.connect()

        receivers = await self.client.publish(self.channel, encode_event(event))
        logger.debug(
            "Published statistics event: channel=%s, tenant_id=%s, receivers=%s",
            self.channel, event.tenant_id, receivers,
        )
        return receivers

    async def close(self) -> None:
        if self.client:
            await self.client.aclose()
            self.client = None
