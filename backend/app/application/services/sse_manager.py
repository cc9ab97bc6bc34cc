"""SSE Manager — in-process event broadcaster for live analysis state updates."""

import asyncio
import json
import logging
from collections.abc import AsyncGenerator
from typing import Any

logger = logging.getLogger(__name__)


class SSEManager:
    """Manages SSE client connections per channel (one channel per user).

    Each connected client gets its own asyncio.Queue. Broadcasting pushes
    the event to every queue of the channel. Clients consume events via an
    async generator.
    """

    def __init__(self, max_queue_size: int = 100) -> None:
        self._queues: dict[str, list[asyncio.Queue[str | None]]] = {}
        self._max_queue_size = max_queue_size

    async def subscribe(
        self, channel: str, initial: tuple[str, dict[str, Any]] | None = None
    ) -> AsyncGenerator[str, None]:
        """Subscribe to a channel's SSE events. Yields formatted SSE strings.

        ``initial`` is an optional (event_type, data) pair sent before any
        broadcast. The generator unsubscribes when the client disconnects.
        """
        queue: asyncio.Queue[str | None] = asyncio.Queue(maxsize=self._max_queue_size)
        self._queues.setdefault(channel, []).append(queue)
        try:
            if initial is not None:
                yield _format(*initial)
            while True:
                event = await queue.get()
                if event is None:
                    break
                yield event
        finally:
            self._discard(channel, queue)

    def _discard(self, channel: str, queue: asyncio.Queue[str | None]) -> None:
        queues = self._queues.get(channel)
        if queues is None:
            return
        if queue in queues:
            queues.remove(queue)
        if not queues:
            del self._queues[channel]

    async def broadcast(self, channel: str, event_type: str, data: dict[str, Any]) -> None:
        """Broadcast an SSE event to all clients of a channel."""
        sse_message = _format(event_type, data)
        dead_queues: list[asyncio.Queue[str | None]] = []

        for queue in self._queues.get(channel, []):
            try:
                queue.put_nowait(sse_message)
            except asyncio.QueueFull:
                dead_queues.append(queue)
                logger.warning("SSE client queue full on %s — disconnecting", channel)

        for q in dead_queues:
            # Drop one pending event so the sentinel fits
            q.get_nowait()
            q.put_nowait(None)
            self._discard(channel, q)

    async def shutdown(self) -> None:
        """Disconnect all connected clients."""
        for queues in self._queues.values():
            for queue in queues:
                if queue.full():
                    queue.get_nowait()
                queue.put_nowait(None)
        self._queues.clear()

    def client_count(self, channel: str | None = None) -> int:
        if channel is not None:
            return len(self._queues.get(channel, []))
        return sum(len(queues) for queues in self._queues.values())


def _format(event_type: str, data: dict[str, Any]) -> str:
    return f"event: {event_type}\ndata: {json.dumps(data, default=str)}\n\n"
