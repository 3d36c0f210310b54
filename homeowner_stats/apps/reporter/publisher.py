"""
Event Publisher for Reporter

Publishes statistics_computed events to Redis Pub/Sub after a successful run.

Usage:
    from homeowner_stats.apps.reporter.publisher import publish_statistics_event

    await publish_statistics_event(result, tenant_id="acme")
"""

import logging
from typing import Optional

from homeowner_stats.utils.mq import StatisticsPublisher
from homeowner_stats.utils.schemas import StatisticsEvent, StatisticsResult

logger = logging.getLogger(__name__)


async def publish_statistics_event(
    result: StatisticsResult,
    tenant_id: Optional[str] = None,
    publisher: Optional[StatisticsPublisher] = None,
) -> StatisticsEvent:
    """
    Publish a statistics_computed event on the publisher's channel.

    Args:
        result: Computed statistics
        tenant_id: Tenant context of the request
        publisher: Publisher to use, a fresh StatisticsPublisher by default

    Returns:
        The published event

    Raises:
        redis.RedisError: If publishing fails
    """
    publisher = publisher or StatisticsPublisher()
    event = StatisticsEvent(tenant_id=tenant_id, result=result)

    try:
        await publisher.publish(event)

        logger.info(
            "Published statistics event",
            extra={
                "channel": publisher.channel,
                "tenant_id": tenant_id,
                "total": result.total,
            },
        )
        return event

    except Exception as e:
        logger.error(
            "Failed to publish statistics event",
            extra={"channel": publisher.channel, "error": str(e)},
            exc_info=True,
        )
        raise

    finally:
        await publisher.close()
