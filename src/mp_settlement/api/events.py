"""Server-sent events over the status-change feed.

The stream is a refresh signal for order pages; clients re-read the order
through the regular endpoints and never treat a message as the write result.
"""
import logging
from collections.abc import AsyncIterator

from fastapi import Request
from fastapi.responses import StreamingResponse

from src.mp_settlement.infrastructure.feed import StatusFeed

logger = logging.getLogger(__name__)

_SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


async def _sse_frames(request: Request, feed: StatusFeed, channel: str) -> AsyncIterator[str]:
    yield ": subscribed\n\n"
    async for message in feed.subscribe(channel):
        if await request.is_disconnected():
            break
        yield f"event: order_status\ndata: {message}\n\n"
    logger.debug("SSE stream on %s closed", channel)


def status_stream(request: Request, feed: StatusFeed, channel: str) -> StreamingResponse:
    return StreamingResponse(
        _sse_frames(request, feed, channel),
        media_type="text/event-stream",
        headers=_SSE_HEADERS,
    )
