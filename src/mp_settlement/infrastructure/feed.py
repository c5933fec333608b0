"""Order status-change feed over Redis pub/sub.

Display-only: observers (buyer order page, admin order list) refresh from it,
but the response of the write call is what decides whether a transition
happened. Messages are published only after the transition is committed.
"""
import json
import logging
from collections.abc import AsyncIterator
from typing import Any

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from src.mp_common.datetime_utils import utc_now
from src.mp_common.redis_client import get_redis
from src.mp_order.domain.models import Order

logger = logging.getLogger(__name__)

ALL_ORDERS_CHANNEL = "orders:all"


def order_channel(order_id: str) -> str:
    return f"orders:{order_id}"


def build_message(order: Order, source: str) -> dict[str, Any]:
    return {
        "order_id": order.id,
        "status": order.status.value,
        "payment_status": order.payment_status.value,
        "source": source,
        "at": utc_now().isoformat(),
    }


class StatusFeed:
    def __init__(self, client: aioredis.Redis | None = None) -> None:
        self._client = client

    async def _redis(self) -> aioredis.Redis:
        if self._client is None:
            return await get_redis()
        return self._client

    async def publish(self, order: Order, source: str) -> None:
        """Publish a committed status change. Feed outages are logged, never raised."""
        payload = json.dumps(build_message(order, source))
        try:
            client = await self._redis()
            await client.publish(order_channel(order.id), payload)
            await client.publish(ALL_ORDERS_CHANNEL, payload)
        except RedisError as exc:
            logger.warning("Status feed publish failed for order %s: %s", order.id, exc)

    async def subscribe(self, channel: str) -> AsyncIterator[str]:
        """Yield raw JSON messages published on ``channel`` until the consumer stops."""
        client = await self._redis()
        pubsub = client.pubsub()
        await pubsub.subscribe(channel)
        try:
            async for message in pubsub.listen():
                if message.get("type") == "message":
                    yield message["data"]
        finally:
            await pubsub.unsubscribe(channel)
            await pubsub.aclose()
