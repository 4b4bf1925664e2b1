"""
Bridge from ChatFeed callbacks to a WebSocket
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from fastapi import WebSocket, WebSocketDisconnect
from starlette.concurrency import run_in_threadpool

from fanchat.deps.exceptions import FanChatError

logger = logging.getLogger(__name__)

# Policy violation: used for rejected tokens and forbidden resources
WS_POLICY_VIOLATION = 1008
WS_TRY_AGAIN_LATER = 1013


async def _wait_for_disconnect(websocket: WebSocket):
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


async def stream_snapshots(
    websocket: WebSocket,
    subscribe: Callable[[Callable], Callable[[], None]],
    after_send: Optional[Callable[[], Awaitable[None]]] = None,
):
    """
    Forward every snapshot a subscription produces as a JSON array until
    the client disconnects, then cancel the subscription
    """
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    def push(snapshot):
        # Called from whichever thread committed the write
        loop.call_soon_threadsafe(queue.put_nowait, snapshot)

    try:
        unsubscribe = await run_in_threadpool(subscribe, push)
    except FanChatError as e:
        logger.warning(f"WebSocket subscription rejected: {e.message}")
        await websocket.close(code=WS_TRY_AGAIN_LATER)
        return

    disconnected = asyncio.ensure_future(_wait_for_disconnect(websocket))
    try:
        while True:
            next_snapshot = asyncio.ensure_future(queue.get())
            done, _ = await asyncio.wait(
                {next_snapshot, disconnected}, return_when=asyncio.FIRST_COMPLETED
            )
            if disconnected in done:
                next_snapshot.cancel()
                break
            snapshot = next_snapshot.result()
            await websocket.send_json([item.model_dump(mode="json") for item in snapshot])
            if after_send is not None:
                await after_send()
    except WebSocketDisconnect:
        pass
    finally:
        unsubscribe()
        disconnected.cancel()
