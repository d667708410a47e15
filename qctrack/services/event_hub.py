import asyncio
from typing import Any, Dict, Iterable, List, Set

import anyio
import structlog
from fastapi import WebSocket
from fastapi.encoders import jsonable_encoder

from .events import ChangeEvent, EventEmitter


logger = structlog.get_logger(__name__)


class EventHub:
    """Fans store change events out to connected websocket clients."""

    def __init__(self) -> None:
        # user_id (str) -> set of WebSocket connections
        self._user_connections: Dict[str, Set[WebSocket]] = {}
        self._lock = asyncio.Lock()
        self._tasks: Set["asyncio.Task[None]"] = set()
        self._unsubscribers: List[Any] = []

    @property
    def connection_count(self) -> int:
        return sum(len(conns) for conns in self._user_connections.values())

    async def connect(self, user_id: str, ws: WebSocket) -> None:
        async with self._lock:
            conns = self._user_connections.setdefault(user_id, set())
            conns.add(ws)

    async def disconnect(self, user_id: str, ws: WebSocket) -> None:
        async with self._lock:
            conns = self._user_connections.get(user_id)
            if conns is not None:
                conns.discard(ws)
                if not conns:
                    self._user_connections.pop(user_id, None)

    async def send_to_user(self, user_id: str, event: str, payload: Any) -> None:
        data = {"event": event, "data": jsonable_encoder(payload)}
        async with self._lock:
            targets = list(self._user_connections.get(user_id, set()))
        await self._send_all(targets, data)

    async def broadcast(self, event: str, payload: Any) -> None:
        data = {"event": event, "data": jsonable_encoder(payload)}
        async with self._lock:
            targets = [ws for conns in self._user_connections.values() for ws in conns]
        await self._send_all(targets, data)

    async def _send_all(self, targets: List[WebSocket], data: dict) -> None:
        for ws in targets:
            try:
                await ws.send_json(data)
            except Exception as e:
                # best-effort; the receive loop drops dead connections
                logger.debug("event_send_failed", event_key=data["event"], error=str(e))

    # Store wiring

    def attach(self, emitters: Iterable[EventEmitter]) -> None:
        for emitter in emitters:
            self._unsubscribers.append(emitter.subscribe(self.on_change))

    def detach(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

    def on_change(self, event: ChangeEvent) -> None:
        if not self._user_connections:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Sync route running in a worker thread
            anyio.from_thread.run(self.broadcast, event.key, event.data)
            return
        task = loop.create_task(self.broadcast(event.key, event.data))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)


# Global singleton hub
hub = EventHub()
