"""
Statistics publisher tests: channel selection, wire payload and retries.
"""

import asyncio
from unittest.mock import AsyncMock

import orjson
import redis.asyncio as redis

from homeowner_stats.utils.config import settings
from homeowner_stats.utils.mq import StatisticsPublisher, encode_event
from homeowner_stats.utils.schemas import RatioMetric, StatisticsEvent, StatisticsResult


def _event():
    result = StatisticsResult(total=2, with_portal=1, without_portal=1, ratios={RatioMetric.PORTAL_ADOPTION: 0.5})
    return StatisticsEvent(tenant_id="acme", result=result)


class TestStatisticsPublisher:

    def test_defaults_to_stats_channel(self):
        assert StatisticsPublisher(redis_url="redis://localhost:6379/0").channel == settings.REDIS_CHANNEL_STATS

    def test_publishes_encoded_event_on_its_channel(self):
        publisher = StatisticsPublisher(redis_url="redis://localhost:6379/0", channel="stats.test")
        publisher.client = AsyncMock()
        publisher.client.publish.return_value = 3
        event = _event()

        receivers = asyncio.run(publisher.publish(event))

        channel, payload = publisher.client.publish.await_args.args
        decoded = orjson.loads(payload)
        assert receivers == 3
        assert channel == "stats.test"
        assert decoded["type"] == "statistics_computed"
        assert decoded["tenant_id"] == "acme"
        assert decoded["result"]["ratios"] == {"portal_adoption": 0.5}
        assert payload == encode_event(event)

    def test_connection_error_is_retried(self):
        publisher = StatisticsPublisher(redis_url="redis://localhost:6379/0")
        publisher.client = AsyncMock()
        publisher.client.publish.side_effect = [redis.ConnectionError("reset"), 1]

        assert asyncio.run(publisher.publish(_event())) == 1
        assert publisher.client.publish.await_count == 2

    def test_close_releases_client(self):
        publisher = StatisticsPublisher(redis_url="redis://localhost:6379/0")
        client = AsyncMock()
        publisher.client = client

        asyncio.run(publisher.close())

        client.aclose.assert_awaited_once()
        assert publisher.client is None
