"""WebSocket adapter implementing the chat ConnectionHandle.

``send`` only enqueues, so the room core never awaits a remote peer. A
per-connection sender task drains the queue. Once the socket is known to
be closed, further sends fail synchronously, which is what lets the
broadcaster prune dead sessions.
"""
from __future__ import annotations

import asyncio
from typing import Optional

from fastapi import WebSocket

from application.ports.chat import ConnectionSendError
from core.logging_config import get_logger
from core.config import settings


logger = get_logger(__name__)

OVERFLOW_POLICIES = {"drop_oldest", "drop_new", "disconnect"}


class WebSocketConnection:
    def __init__(
        self,
        ws: WebSocket,
        *,
        queue_max: Optional[int] = None,
        overflow_policy: Optional[str] = None,
    ) -> None:
        self._ws = ws
        size = queue_max if queue_max is not None else settings.REALTIME_WS_SEND_QUEUE_MAX
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max(1, int(size)))
        policy = (overflow_policy or settings.REALTIME_WS_SEND_OVERFLOW_POLICY or "drop_oldest").lower()
        if policy not in OVERFLOW_POLICIES:
            logger.warning("ws_send_queue_policy_invalid", policy=policy, fallback="drop_oldest")
            policy = "drop_oldest"
        self._policy = policy
        self._sender_task: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        if self._sender_task is None:
            self._sender_task = asyncio.create_task(self._sender_loop())

    def send(self, text: str) -> None:
        if self._closed:
            raise ConnectionSendError("connection closed")
        try:
            self._queue.put_nowait(text)
            return
        except asyncio.QueueFull:
            pass

        if self._policy == "drop_new":
            logger.warning("ws_send_queue_drop_new")
            return
        if self._policy == "disconnect":
            logger.warning("ws_send_queue_disconnect")
            self._closed = True
            asyncio.create_task(self._close_socket(code=1013))
            raise ConnectionSendError("send queue overflow")
        # default: drop_oldest
        self._queue.get_nowait()
        self._queue.put_nowait(text)
        logger.warning("ws_send_queue_drop_oldest")

    async def aclose(self) -> None:
        """Stop the sender task. Does not close the socket itself."""
        self._closed = True
        task, self._sender_task = self._sender_task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def _sender_loop(self) -> None:
        try:
            while True:
                text = await self._queue.get()
                try:
                    await self._ws.send_text(text)
                except Exception as exc:
                    self._closed = True
                    logger.warning("ws_send_failed", error=str(exc))
                    return
        except asyncio.CancelledError:  # graceful exit
            return

    async def _close_socket(self, code: int) -> None:
        try:
            await self._ws.close(code=code)
        except RuntimeError as exc:
            # Already closed by the peer or by the receive loop
            logger.debug("ws_close_ignored", error=str(exc))
