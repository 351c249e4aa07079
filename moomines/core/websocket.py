"""
WebSocket manager for real-time round updates.
Relays engine events (tile signals and state snapshots) to every client.
"""

import asyncio
from typing import Dict, Optional, Set

import orjson
from fastapi import WebSocket

from moomines.core.events import RoundEvent
from moomines.core.logger import get_logger

logger = get_logger("websocket")


class ConnectionManager:
    """Tracks connected renderers and fans round events out to them."""

    def __init__(self):
        self.all_connections: Set[WebSocket] = set()
        self.topics: Dict[str, Set[WebSocket]] = {
            "round": set(),
        }
        self._pending: Set[asyncio.Task] = set()

    async def _send_json(self, websocket: WebSocket, data: dict):
        # orjson.dumps returns bytes, so these go out as binary frames
        await websocket.send_bytes(orjson.dumps(data))

    async def connect(self, websocket: WebSocket, initial: Optional[dict] = None):
        """Accept a connection, subscribe it everywhere and send the current state."""
        await websocket.accept()
        self.all_connections.add(websocket)

        for topic in self.topics.values():
            topic.add(websocket)

        logger.info(f"WebSocket connected: total={len(self.all_connections)}")

        if initial is not None:
            await self._send_json(websocket, initial)

    def disconnect(self, websocket: WebSocket):
        self.all_connections.discard(websocket)
        for topic in self.topics.values():
            topic.discard(websocket)

        logger.info(f"WebSocket disconnected: total={len(self.all_connections)}")

    async def broadcast(
        self,
        topic: str,
        message: dict,
        batch_size: int = 100,
        delay: float = 0.01,
    ):
        """
        Send a message to every subscriber of a topic, in batches so a large
        audience does not hog the event loop. Clients that fail are dropped.
        """
        if topic not in self.topics:
            logger.warning(f"Broadcast to unknown topic: {topic}")
            return

        disconnected = []
        targets = list(self.topics[topic])

        for i in range(0, len(targets), batch_size):
            batch = targets[i : i + batch_size]
            results = await asyncio.gather(
                *(self._send_json(ws, message) for ws in batch), return_exceptions=True
            )

            for ws, result in zip(batch, results):
                if isinstance(result, Exception):
                    disconnected.append(ws)

            is_last_batch = (i + batch_size) >= len(targets)
            if delay > 0 and not is_last_batch:
                await asyncio.sleep(delay)

        if disconnected:
            logger.info(f"Found {len(disconnected)} disconnected clients during broadcast.")
            for ws in disconnected:
                self.disconnect(ws)

    def publish_event(self, event: RoundEvent):
        """
        Engine listener. Runs synchronously inside the engine call, so the
        broadcast is scheduled on the running loop rather than awaited.
        """
        if not self.all_connections:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug(f"No running loop, dropping {event.kind} event")
            return

        task = loop.create_task(self.broadcast("round", event.to_dict()))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def get_connection_count(self) -> int:
        return len(self.all_connections)
