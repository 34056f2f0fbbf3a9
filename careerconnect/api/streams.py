"""
Server-sent events over snapshot subscriptions.

Each connected client gets its own subscription; snapshots cross from
the subscription thread into the event loop through an asyncio queue.
"""

import asyncio
import json
from typing import Callable

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import StreamingResponse

from careerconnect.core.logging import get_logger

logger = get_logger(__name__)

HEARTBEAT_SECONDS = 25

SubscribeFn = Callable[[Callable], Callable[[], None]]


def _event(name: str, payload) -> str:
    return f"event: {name}\ndata: {json.dumps(jsonable_encoder(payload))}\n\n"


async def _snapshot_events(request: Request, channel: str, start: SubscribeFn):
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    def on_snapshot(payload):
        if not loop.is_closed():
            loop.call_soon_threadsafe(queue.put_nowait, payload)

    unsubscribe = start(on_snapshot)
    logger.info("stream_opened", channel=channel)
    try:
        while not await request.is_disconnected():
            try:
                payload = await asyncio.wait_for(queue.get(), timeout=HEARTBEAT_SECONDS)
            except asyncio.TimeoutError:
                yield "event: heartbeat\ndata: {}\n\n"
                continue
            yield _event("snapshot", payload)
    finally:
        unsubscribe()
        logger.info("stream_closed", channel=channel)


def snapshot_stream(request: Request, channel: str, start: SubscribeFn) -> StreamingResponse:
    return StreamingResponse(
        _snapshot_events(request, channel, start),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
